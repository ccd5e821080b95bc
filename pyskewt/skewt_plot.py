### This module contains the SkewtPlot class
### A SkewtPlot lays out a skew-T log-p diagram in a unit square, independent
### of any drawing library. (0, 0) is the top left corner at the lowest
### pressure and the coldest temperature, (1, 1) is the bottom right.
###
### y = log10(p/pmin)/log10(pmax/pmin)
### x = (T-Tmin)/(Tmax-Tmin)+(1-y)*skew
###
### Every family of lines is a dictionary of Paths keyed by the quantity
### the line follows (pressure, altitude, temperature or mixing ratio).
### A Path is a list of strokes and each stroke a list of (x, y) points, so
### callers draw it with one move_to per stroke followed by line_tos.
###
### Module requirements
### Python 3+
### Numpy

### Importing required modules
import pyskewt.atmos_math as am
import pyskewt.atmos_thermo as at
import pyskewt.sounding as ps
import logging
import numbers
import numpy as np

logger = logging.getLogger(__name__)

#Display defaults
DEFAULT_SURFACE_TEMPERATURE_RANGE = (-40.0, 50.0) #'C
DEFAULT_PRESSURE_RANGE = (100.0, 1050.0) #hPa
DEFAULT_ADIABAT_SPACING = 10.0 #'C
DEFAULT_ISOTHERM_SPACING = DEFAULT_ADIABAT_SPACING
DEFAULT_ISOBAR_SPACING = 100.0 #hPa
DEFAULT_SKEW = 1.0
DEFAULT_ISOHUMES = (0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 7.5, 10.0, 15.0, 20.0) #g/kg
DEFAULT_ALTITUDE_ISOBARS = (0.0, 5000.0, 10000.0, 20000.0, 30000.0, 40000.0) #ft

#Step in y used to trace the curved isopleths
ISOPLETH_DY = 1.0/500.0

#Inset used to pick the first and last isotherm and adiabat
FAMILY_MARGIN = 0.05

#Distance outside the square a trace point may sit and still be kept
TRACE_MARGIN = 0.0

############################################################
#---------------------      PATH       --------------------#
############################################################

class Path:
    """A polyline that may be broken into several strokes."""

    def __init__(self):
        self.strokes = []

    def move_to(self, x, y):
        self.strokes.append([(x, y)])

    def line_to(self, x, y):
        if (len(self.strokes) == 0):
            self.move_to(x, y)
        else:
            self.strokes[-1].append((x, y))

    @property
    def current_point(self):
        if (len(self.strokes) == 0):
            return None
        return self.strokes[-1][-1]

    @property
    def points(self):
        return [pt for stroke in self.strokes for pt in stroke]

    @property
    def is_empty(self):
        return (len(self.strokes) == 0)

    #Smallest (xmin, ymin, xmax, ymax) box holding every point
    def bounding_box(self):
        points = self.points
        if (len(points) == 0):
            return None
        xs = [pt[0] for pt in points]
        ys = [pt[1] for pt in points]
        return (min(xs), min(ys), max(xs), max(ys))

    def __len__(self):
        return len(self.strokes)

    def __repr__(self):
        return "Path({} strokes, {} points)".format(len(self.strokes), len(self.points))

############################################################
#---------------------    SKEWTPLOT    --------------------#
############################################################

class SkewtPlot:

    ### Constructor Method
    ### Inputs:
    ###  profile, optional, Profile to trace
    ###  surface_temperature_range, optional, (low, high) temperature in 'C across the bottom edge
    ###  pressure_range, optional, (low, high) pressure in hPa from top to bottom
    ###  isotherm_spacing, adiabat_spacing, optional, 'C between lines
    ###  isobar_spacing, optional, hPa between isobars
    ###  isohumes, optional, mixing ratios in g/kg
    ###  altitude_isobars, optional, pressure altitudes in feet
    ###  skew, optional, horizontal shift of an isotherm per unit of height
    ###
    ### Outputs:
    ###  None
    def __init__(self, profile=None, surface_temperature_range=DEFAULT_SURFACE_TEMPERATURE_RANGE,
            pressure_range=DEFAULT_PRESSURE_RANGE, isotherm_spacing=DEFAULT_ISOTHERM_SPACING,
            adiabat_spacing=DEFAULT_ADIABAT_SPACING, isobar_spacing=DEFAULT_ISOBAR_SPACING,
            isohumes=DEFAULT_ISOHUMES, altitude_isobars=DEFAULT_ALTITUDE_ISOBARS, skew=DEFAULT_SKEW):

        self.profile = profile
        self.surface_temperature_range = _as_pair(surface_temperature_range)
        self.pressure_range = _as_pair(pressure_range)
        self.isotherm_spacing = isotherm_spacing
        self.adiabat_spacing = adiabat_spacing
        self.isobar_spacing = isobar_spacing
        self.isohumes = _numbers(isohumes)
        self.altitude_isobars = _numbers(altitude_isobars)
        self.skew = skew

        #Returning
        return

    ### Pressure altitude range in feet, from the bottom to the top of the diagram
    ### None when the pressure range is not usable
    @property
    def altitude_range(self):
        if not self.is_valid():
            return None
        return (at.standard_altitude(self.pressure_range[1]), at.standard_altitude(self.pressure_range[0]))

    @altitude_range.setter
    def altitude_range(self, value):
        value = _as_pair(value)
        if ((value is None) or not all(_is_number(v) for v in value)):
            self.pressure_range = None
            return
        low, high = value
        self.pressure_range = (at.standard_pressure(high), at.standard_pressure(low))

    #Checks that the display settings describe a drawable diagram
    def is_valid(self):
        pressure_range = _as_pair(self.pressure_range)
        temperature_range = _as_pair(self.surface_temperature_range)
        if ((pressure_range is None) or (temperature_range is None)):
            return False
        pmin, pmax = pressure_range
        tmin, tmax = temperature_range
        if not all(_is_number(v) for v in (pmin, pmax, tmin, tmax, self.skew)):
            return False
        return ((pmin > 0) and (pmax > pmin) and (tmax > tmin))

    #####-----------COORDINATE TRANSFORMS-----------#####

    def y_for_pressure(self, pres):
        pmin, pmax = self.pressure_range
        return np.log10(pres/pmin)/np.log10(pmax/pmin)

    def y_for_altitude(self, alt):
        return self.y_for_pressure(at.standard_pressure(alt))

    def pressure_at(self, y):
        pmin, pmax = self.pressure_range
        return pmin*10.0**(y*np.log10(pmax/pmin))

    def x_for_surface_temperature(self, temp):
        tmin, tmax = self.surface_temperature_range
        return (temp-tmin)/(tmax-tmin)

    #Diagram coordinates of a pressure and temperature
    #Outputs:
    # (x, y) tuple of floats
    def point(self, pres, temp):
        return self.at_height(self.y_for_pressure(pres), temp)

    #Diagram coordinates of a temperature at a height on the diagram
    def at_height(self, y, temp):
        y = float(y)
        return (float(self.x_for_surface_temperature(temp)+(1.0-y)*self.skew), y)

    #Inverse of point
    #Outputs:
    # (pressure in hPa, temperature in 'C)
    def pressure_and_temperature(self, x, y):
        tmin, tmax = self.surface_temperature_range
        skewed_x = x-(1.0-y)*self.skew
        temp = skewed_x*(tmax-tmin)+tmin
        return float(self.pressure_at(y)), float(temp)

    #####-----------CURSOR LOOKUPS-----------#####

    #Levels nearest in pressure to a height on the diagram
    #Outputs:
    # (temperature Point, dew point Point) or None
    def closest_temperature_and_dew_point(self, y):
        if ((self.profile is None) or not self.is_valid()):
            return None
        pres = self.pressure_at(y)
        temp = self.profile.closest_value(pres, ps.TEMPERATURE)
        dewp = self.profile.closest_value(pres, ps.DEW_POINT)
        if ((temp is None) or (dewp is None)):
            return None
        return temp, dewp

    #Interpolated temperature and dew point at a height on the diagram
    #Outputs:
    # (temperature, dew point) in 'C or None
    def temperature_and_dew_point(self, y):
        if ((self.profile is None) or not self.is_valid()):
            return None
        pres = self.pressure_at(y)
        temp = self.profile.interpolated_value(ps.TEMPERATURE, pres)
        dewp = self.profile.interpolated_value(ps.DEW_POINT, pres)
        if ((temp is None) or (dewp is None)):
            return None
        return temp, dewp

    #####-----------SOUNDING TRACES-----------#####

    #Method to trace one field of the profile
    #Segments with one end inside the square are cut exactly at its edge.
    #Segments with both ends outside are never drawn, even when they cross
    #the square, and the trace picks up again with a new stroke.
    #Inputs:
    # field, string, TEMPERATURE or DEW_POINT
    #Outputs:
    # Path, or None without a profile or any level carrying the field
    def trace(self, field):

        if ((self.profile is None) or not self.is_valid()):
            return None
        data = [p for p in self.profile.points if (getattr(p, field) is not None)]
        if (len(data) == 0):
            return None

        path = Path()
        last = self.point(data[0].pressure, getattr(data[0], field))
        if am.in_unit_square(last[0], last[1], TRACE_MARGIN):
            path.move_to(*last)

        for p in data[1:]:
            pt = self.point(p.pressure, getattr(p, field))
            if not (am.in_unit_square(last[0], last[1], TRACE_MARGIN) or am.in_unit_square(pt[0], pt[1], TRACE_MARGIN)):
                last = pt
                continue
            segment = am.clip_segment(last, pt)
            if (segment is not None):
                start, end = segment
                if (path.current_point != start):
                    path.move_to(*start)
                path.line_to(*end)
            last = pt

        #Returning
        return path

    @property
    def temperature_path(self):
        return self.trace(ps.TEMPERATURE)

    @property
    def dew_point_path(self):
        return self.trace(ps.DEW_POINT)

    #####-----------STRAIGHT ISOPLETHS-----------#####

    #Horizontal line across the square
    def _horizontal(self, y):
        path = Path()
        path.move_to(0.0, float(y))
        path.line_to(1.0, float(y))
        return path

    ### Isobars keyed by pressure (hPa)
    ### Both range ends plus every multiple of the spacing between them
    @property
    def isobar_paths(self):
        if (not self.is_valid()) or not _is_positive(self.isobar_spacing):
            return {}
        pmin, pmax = self.pressure_range
        pressures = set([pmin, pmax])
        pres = np.floor(pmax/self.isobar_spacing)*self.isobar_spacing
        while (pres > pmin):
            pressures.add(float(pres))
            pres -= self.isobar_spacing

        #Returning
        return dict((p, self._horizontal(self.y_for_pressure(p))) for p in sorted(pressures))

    ### Isobars keyed by pressure altitude (ft), only those inside the diagram
    @property
    def altitude_isobar_paths(self):
        if not self.is_valid():
            return {}
        paths = {}
        for alt in _numbers(self.altitude_isobars):
            y = self.y_for_altitude(alt)
            if (0.0 < y <= 1.0):
                paths[alt] = self._horizontal(y)
        return paths

    #Method to calculate one isotherm, clipped to the square
    #Inputs:
    # temp, float, temperature in 'C
    #Outputs:
    # ((x, y), (x, y)) bottom and top ends, or None if it misses the square
    def isotherm(self, temp):

        if not (_is_number(temp) and self.is_valid()):
            return None
        sx = float(self.x_for_surface_temperature(temp))
        skew = self.skew

        #Parameterized by height t = 1-y, x = sx+t*skew
        if (skew == 0):
            if not (0.0 <= sx <= 1.0):
                return None
            return ((sx, 1.0), (sx, 0.0))

        t_left = (0.0-sx)/skew
        t_right = (1.0-sx)/skew
        t_enter = max(0.0, min(t_left, t_right))
        t_exit = min(1.0, max(t_left, t_right))
        if (t_enter > t_exit):
            return None

        start = self._isotherm_point(sx, t_enter, t_left, t_right)
        finish = self._isotherm_point(sx, t_exit, t_left, t_right)

        #Returning
        return (start, finish)

    #Point on an isotherm, snapped onto the side edge it was clipped against
    def _isotherm_point(self, sx, t, t_left, t_right):
        if (t == t_left):
            x = 0.0
        elif (t == t_right):
            x = 1.0
        else:
            x = min(1.0, max(0.0, sx+t*self.skew))
        return (x, 1.0-t)

    ### Isotherms keyed by temperature ('C)
    @property
    def isotherm_paths(self):
        if (not self.is_valid()) or not _is_positive(self.isotherm_spacing):
            return {}
        m = FAMILY_MARGIN
        first = self.pressure_and_temperature(m, m)[1]
        last = self.pressure_and_temperature(1.0-m, 1.0-m)[1]

        paths = {}
        for temp in _spaced_values(first, last, self.isotherm_spacing):
            line = self.isotherm(temp)
            if (line is None):
                continue
            path = Path()
            path.move_to(*line[0])
            path.line_to(*line[1])
            paths[temp] = path

        #Returning
        return paths

    #####-----------CURVED ISOPLETHS-----------#####

    #Heights at which the curved isopleths are evaluated, bottom up
    def _steps(self):
        n = int(round(1.0/ISOPLETH_DY))
        return [max(0.0, 1.0-i*ISOPLETH_DY) for i in range(1, n+1)]

    #Method to trace a dry adiabat
    #Points outside the square are dropped and the line resumes where it comes back.
    #Inputs:
    # temp, float, temperature in 'C at the bottom of the diagram
    #Outputs:
    # Path or None if it never enters the square
    def dry_adiabat(self, temp):

        if not (_is_number(temp) and self.is_valid()):
            return None
        path = Path()
        drawing = False
        last_alt = at.standard_altitude(self.pressure_at(1.0))
        x = float(self.x_for_surface_temperature(temp))
        if am.in_unit_square(x, 1.0):
            path.move_to(x, 1.0)
            drawing = True

        for y in self._steps():
            pres = self.pressure_at(y)
            alt = at.standard_altitude(pres)
            temp = at.dry_parcel_temp(temp, last_alt, alt)
            pt = self.at_height(y, temp)
            if am.in_unit_square(*pt):
                if drawing:
                    path.line_to(*pt)
                else:
                    path.move_to(*pt)
                    drawing = True
            else:
                drawing = False
            last_alt = alt

        #Returning
        return None if path.is_empty else path

    #Method to trace a moist adiabat, it stops the first time it leaves the square
    #Inputs:
    # temp, float, temperature in 'C at the bottom of the diagram
    #Outputs:
    # Path or None if it starts outside the square
    def moist_adiabat(self, temp):

        if not (_is_number(temp) and self.is_valid()):
            return None
        x = float(self.x_for_surface_temperature(temp))
        if not am.in_unit_square(x, 1.0):
            return None
        path = Path()
        path.move_to(x, 1.0)
        last_alt = at.standard_altitude(self.pressure_at(1.0))

        for y in self._steps():
            pres = self.pressure_at(y)
            alt = at.standard_altitude(pres)
            temp = float(at.saturated_parcel_temp(temp, last_alt, alt, pres))
            pt = self.at_height(y, temp)
            if not am.in_unit_square(*pt):
                break
            path.line_to(*pt)
            last_alt = alt

        #Returning
        return path

    #Method to trace a line of constant saturation mixing ratio, it stops the
    #first time it leaves the square
    #Inputs:
    # mixr, float, mixing ratio in g/kg
    #Outputs:
    # Path or None if it starts outside the square
    def isohume(self, mixr):

        if not (_is_positive(mixr) and self.is_valid()):
            return None
        pres = self.pressure_at(1.0)
        temp = float(at.temp_from_mixing_ratio(mixr, pres))-at.KELVIN_OFFSET
        start = self.at_height(1.0, temp)
        if not am.in_unit_square(*start):
            return None
        path = Path()
        path.move_to(*start)

        for y in self._steps():
            pres = self.pressure_at(y)
            temp = float(at.temp_from_mixing_ratio(mixr, pres))-at.KELVIN_OFFSET
            pt = self.at_height(y, temp)
            if not am.in_unit_square(*pt):
                break
            path.line_to(*pt)

        #Returning
        return path

    ### Dry adiabats keyed by temperature at the bottom of the diagram ('C)
    ### They run from just inside the bottom left corner to the adiabat
    ### passing just inside the top right corner.
    @property
    def dry_adiabat_paths(self):
        if (not self.is_valid()) or not _is_positive(self.adiabat_spacing):
            return {}
        m = FAMILY_MARGIN
        first = self.pressure_and_temperature(m, 1.0)[1]
        top_pres, top_temp = self.pressure_and_temperature(1.0-m, m)
        last = at.dry_parcel_temp(top_temp, at.standard_altitude(top_pres), 0.0)

        paths = {}
        for temp in _spaced_values(first, last, self.adiabat_spacing):
            path = self.dry_adiabat(temp)
            if (path is not None):
                paths[temp] = path
        return paths

    ### Moist adiabats keyed by temperature at the bottom of the diagram ('C)
    @property
    def moist_adiabat_paths(self):
        if (not self.is_valid()) or not _is_positive(self.adiabat_spacing):
            return {}
        m = FAMILY_MARGIN
        first = self.pressure_and_temperature(m, 1.0)[1]
        last = self.pressure_and_temperature(1.0-m, 1.0)[1]

        paths = {}
        for temp in _spaced_values(first, last, self.adiabat_spacing):
            path = self.moist_adiabat(temp)
            if (path is not None):
                paths[temp] = path
        return paths

    ### Isohumes keyed by mixing ratio (g/kg)
    @property
    def isohume_paths(self):
        if not self.is_valid():
            return {}
        paths = {}
        for mixr in _numbers(self.isohumes):
            path = self.isohume(mixr)
            if (path is not None):
                paths[mixr] = path
        return paths

    #Method to compute every family at once
    #Outputs:
    # dictionary keyed by family name
    def geometry(self):
        if not self.is_valid():
            logger.warning("Display settings do not describe a drawable diagram: pressure {} temperature {}".format(
                self.pressure_range, self.surface_temperature_range))
        return {"temperature":self.temperature_path, "dew_point":self.dew_point_path,
            "isobars":self.isobar_paths, "altitude_isobars":self.altitude_isobar_paths,
            "isotherms":self.isotherm_paths, "dry_adiabats":self.dry_adiabat_paths,
            "moist_adiabats":self.moist_adiabat_paths, "isohumes":self.isohume_paths}

#Multiples of spacing from the first one at or above low through the last at or below high
def _spaced_values(low, high, spacing):
    first = np.ceil(low/spacing)
    last = np.floor(high/spacing)
    if not (np.isfinite(first) and np.isfinite(last)):
        return []
    return [float(k*spacing) for k in range(int(first), int(last)+1)]

### Function to lay out a whole diagram
### Inputs:
###  profile, optional, Profile to trace
###  display, keyword arguments passed to SkewtPlot
### Outputs:
###  dictionary of every path family, see SkewtPlot.geometry
def compute_geometry(profile=None, **display):
    return SkewtPlot(profile, **display).geometry()

#Tests for a finite real number
def _is_number(value):
    return (isinstance(value, numbers.Real) and not isinstance(value, bool) and bool(np.isfinite(value)))

def _is_positive(value):
    return (_is_number(value) and (value > 0))

#Turns a (low, high) display range into a tuple, or None if it isn't a pair
def _as_pair(value):
    if ((value is None) or isinstance(value, str)):
        return None
    try:
        value = tuple(value)
    except TypeError:
        return None
    if (len(value) != 2):
        return None
    return value

#Keeps the numeric entries of a list of display values
def _numbers(values):
    if ((values is None) or isinstance(values, str)):
        return ()
    try:
        return tuple(v for v in values if _is_number(v))
    except TypeError:
        return ()
