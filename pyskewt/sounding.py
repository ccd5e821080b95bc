### This module contains the canonical sounding model shared by every decoder
### A Point is one vertical level and a Profile is an immutable, ordered
### collection of Points valid at one time, with a few derived quantities.
###
### Points are ordered from the lowest altitude (highest pressure) upward.
### Values on a Point are plain floats in the diagram's native units:
###  pressure hPa, height m, temperature and dew point 'C,
###  wind direction degrees (from), wind speed knots.
### Profile.sounding exposes the same data as MetPy unit-aware arrays.
###
### Module requirements
### Python 3+
### MetPy 1.0+
### Numpy

### Importing required modules
import pyskewt.atmos_math as am
import pyskewt.atmos_thermo as at
from collections import namedtuple
from datetime import datetime, timezone
import logging
from metpy.units import units as mu
import metpy.calc as mc
import numpy as np
from types import MappingProxyType

logger = logging.getLogger(__name__)

#Physically plausible temperature window ('C); anything outside is missing
TEMPERATURE_RANGE = (-270.0, 100.0)

#Field selectors
TEMPERATURE = "temperature"
DEW_POINT = "dew_point"
HEIGHT = "height"
WIND_DIRECTION = "wind_direction"
WIND_SPEED = "wind_speed"
FIELDS = (TEMPERATURE, DEW_POINT, HEIGHT, WIND_DIRECTION, WIND_SPEED)
INTERPOLATED_FIELDS = (TEMPERATURE, DEW_POINT, HEIGHT, WIND_SPEED)

############################################################
#---------------------     ERRORS      --------------------#
############################################################

class SoundingParseError(ValueError):
    """Base class for every decoding failure.

    line holds the offending input line or group when one is known.
    """

    def __init__(self, message, line=None):
        super().__init__(message)
        self.line = line

class EmptyInputError(SoundingParseError):
    pass

class MissingHeaderError(SoundingParseError):
    pass

class DuplicateStationError(SoundingParseError):
    pass

class LineTypeMismatchError(SoundingParseError):
    pass

class UnparseableLineError(SoundingParseError):
    pass

class UnparseableValueError(SoundingParseError):
    pass

class NoDataError(SoundingParseError):
    pass

class MissingStationError(SoundingParseError):
    pass

class UnknownFormatError(SoundingParseError):
    pass

############################################################
#---------------------      POINT      --------------------#
############################################################

_POINT_FIELDS = ("pressure", "height", "temperature", "dew_point", "wind_direction",
    "wind_speed", "latitude", "longitude", "time")

class Point(namedtuple("Point", _POINT_FIELDS)):
    """One sounding level. Only pressure is required and it must be positive."""

    __slots__ = ()

    def __new__(cls, pressure, height=None, temperature=None, dew_point=None,
            wind_direction=None, wind_speed=None, latitude=None, longitude=None, time=None):
        if ((pressure is None) or not (pressure > 0)):
            raise UnparseableValueError("Level pressure must be positive, got {}".format(pressure))
        return super().__new__(cls, float(pressure), height, temperature, dew_point,
            wind_direction, wind_speed, latitude, longitude, time)

    @property
    def has_temperatures(self):
        return ((self.temperature is not None) and (self.dew_point is not None))

    @property
    def has_wind(self):
        return ((self.wind_direction is not None) and (self.wind_speed is not None))

#Returns the temperature if it is physically plausible, otherwise None
def safe_temperature(value):
    if (value is None):
        return None
    value = float(value)
    if not (TEMPERATURE_RANGE[0] <= value <= TEMPERATURE_RANGE[1]):
        return None
    return value

#Returns the wind speed if it is usable, otherwise None
def safe_wind_speed(value):
    if (value is None):
        return None
    value = float(value)
    if not (value >= 0):
        return None
    return value

#Picks the surface point for a profile
#Inputs:
# points, list of Points in data order
# explicit, optional, the Point the source tagged as the surface
#Outputs:
# The explicit point when it carries both temperatures, otherwise the
# highest pressure point that does, otherwise None
def select_surface_point(points, explicit=None):
    if ((explicit is not None) and explicit.has_temperatures):
        return explicit

    surface = None
    for p in points:
        if (p.has_temperatures and ((surface is None) or (p.pressure > surface.pressure))):
            surface = p

    #Returning
    return surface

#Decoders accept either raw bytes or text
def as_text(data):
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    if ((data is None) or (data.strip() == "")):
        raise EmptyInputError("No sounding data was provided")
    return data

############################################################
#---------------------     PROFILE     --------------------#
############################################################

WindShear = namedtuple("WindShear", ("below", "above", "north", "east", "north_per_foot", "east_per_foot"))

class Profile:

    ### Constructor Method
    ### Inputs:
    ###  time, datetime, valid time of the sounding (UTC)
    ###  points, iterable of Points, at least one
    ###  elevation, optional, station elevation in meters. Defaults to the surface
    ###   height, then 0.
    ###  surface_point, optional, Point chosen as the surface
    ###  cape, cin, helicity, precipitable_water, optional, values reported by the source
    ###  metadata, optional, dictionary of source specific details (station ids etc.)
    ###
    ### Outputs:
    ###  None
    def __init__(self, time, points, elevation=None, surface_point=None, cape=None, cin=None,
            helicity=None, precipitable_water=None, metadata=None):

        points = tuple(points)
        if (len(points) == 0):
            raise NoDataError("A profile needs at least one level")

        if (elevation is None):
            if ((surface_point is not None) and (surface_point.height is not None)):
                elevation = surface_point.height
            else:
                elevation = 0.0

        self._time = time
        self._points = points
        self._elevation = float(elevation)
        self._surface_point = surface_point
        self._cape = cape
        self._cin = cin
        self._helicity = helicity
        self._precipitable_water = precipitable_water
        self._metadata = MappingProxyType(dict(metadata or {}))

        #Returning
        return

    #####-----------READ ONLY ATTRIBUTES-----------#####

    @property
    def time(self):
        return self._time

    @property
    def points(self):
        return self._points

    @property
    def elevation(self):
        return self._elevation

    @property
    def surface_point(self):
        return self._surface_point

    @property
    def cape(self):
        return self._cape

    @property
    def cin(self):
        return self._cin

    @property
    def helicity(self):
        return self._helicity

    @property
    def precipitable_water(self):
        return self._precipitable_water

    @property
    def metadata(self):
        return self._metadata

    def __len__(self):
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    def __repr__(self):
        return "Profile(time={!r}, levels={})".format(self._time, len(self._points))

    #####-----------METHODS TO QUERY THE PROFILE-----------#####

    #Method to interpolate a field to a pressure
    #Values are linear in pressure between the levels that bracket the target.
    #Targets outside the profile clamp to the nearest level.
    #Inputs:
    # field, string, one of TEMPERATURE, DEW_POINT, HEIGHT, WIND_SPEED
    # at_pressure, float, target pressure in hPa
    #Outputs:
    # The value or None if no level carries the field
    def interpolated_value(self, field, at_pressure):

        if (field not in INTERPOLATED_FIELDS):
            raise ValueError("{} cannot be interpolated. Options are {}".format(field, INTERPOLATED_FIELDS))

        #Only levels carrying the field are considered
        below = None #Closest level with pressure above the target
        above = None #Closest level with pressure below the target
        for p in self._points:
            value = getattr(p, field)
            if (value is None):
                continue
            if (p.pressure == at_pressure):
                return value
            elif (p.pressure > at_pressure):
                if ((below is None) or (p.pressure < below.pressure)):
                    below = p
            elif ((above is None) or (p.pressure > above.pressure)):
                above = p

        if ((below is None) and (above is None)):
            return None
        elif (below is None):
            return getattr(above, field)
        elif (above is None):
            return getattr(below, field)

        #Returning
        return am.linear_interp(below.pressure, above.pressure, at_pressure,
            getattr(below, field), getattr(above, field))

    #Method to find the level closest in pressure that carries a field
    #Ties go to the level that comes first in the profile.
    #Inputs:
    # to_pressure, float, pressure in hPa
    # field, string, one of FIELDS
    #Outputs:
    # The Point or None if no level carries the field
    def closest_value(self, to_pressure, field):

        if (field not in FIELDS):
            raise ValueError("Unknown field {}. Options are {}".format(field, FIELDS))

        closest = None
        for p in self._points:
            if (getattr(p, field) is None):
                continue
            if ((closest is None) or (abs(p.pressure-to_pressure) < abs(closest.pressure-to_pressure))):
                closest = p

        #Returning
        return closest

    #Method to compare two profiles level by level
    #Inputs:
    # other, Profile
    # tolerance, float, largest difference allowed between numeric values
    #Outputs:
    # True if both profiles have the same time and levels.
    # Heights and per sample positions are source specific and not compared.
    def equivalent_to(self, other, tolerance=1e-6):

        if ((self.time != other.time) or (len(self) != len(other))):
            return False

        keys = ("pressure", TEMPERATURE, DEW_POINT, WIND_DIRECTION, WIND_SPEED)
        for (a, b) in zip(self.points, other.points):
            for k in keys:
                va = getattr(a, k)
                vb = getattr(b, k)
                if ((va is None) or (vb is None)):
                    if (va is not vb):
                        return False
                elif (abs(va-vb) > tolerance):
                    return False

        #Returning
        return True

    #Method to list the level heights
    #Levels without a reported height get the standard atmosphere height of their pressure
    #Outputs:
    # heights, numpy array of floats, meters
    def heights(self):
        heights = []
        for p in self._points:
            if (p.height is not None):
                heights.append(p.height)
            else:
                heights.append(at.standard_altitude(p.pressure)*at.METERS_PER_FOOT)
        return np.array(heights, dtype="float")

    ### Unit aware version of the profile, one array per variable
    ### Keys include pres, alt, temp, dewp, wdir, wspd, uwind, vwind, pot_temp, mixr
    ### Missing values are Nans
    @property
    def sounding(self):

        def column(name):
            return np.array([np.nan if (getattr(p, name) is None) else getattr(p, name)
                for p in self._points], dtype="float")

        sounding = {}
        sounding["pres"] = column("pressure")*mu.hPa
        sounding["alt"] = self.heights()*mu.meter
        sounding["temp"] = column("temperature")*mu.degC
        sounding["dewp"] = column("dew_point")*mu.degC
        sounding["wdir"] = column("wind_direction")*mu.deg
        sounding["wspd"] = column("wind_speed")*mu.knot
        sounding["uwind"], sounding["vwind"] = mc.wind_components(sounding["wspd"], sounding["wdir"])

        #Potential temperature and mixing ratio
        unitless = self.strip_units(sounding)
        sounding["pot_temp"] = (at.pot_temp(unitless["pres"]*100.0,
            unitless["temp"]+at.KELVIN_OFFSET)-at.KELVIN_OFFSET)*mu.degC
        e = at.sat_vaporpres(unitless["dewp"]+at.KELVIN_OFFSET)
        sounding["mixr"] = at.etow(unitless["pres"]*100.0, e)*1000.0*mu.g/mu.kg

        #Returning
        return sounding

    ###Method to strip a unit aware sounding of units
    ###Input, optional, sounding dictionary. Defaults to this profile's sounding.
    ###Output
    ### unitless, dictionary of plain numpy arrays
    def strip_units(self, sounding=None):
        if (sounding is None):
            sounding = self.sounding
        unitless = {}
        for k in sounding.keys():
            unitless[k] = np.array(sounding[k].magnitude)
        return unitless

    #Method to calculate the lifting condensation level of the surface parcel
    #Outputs:
    # lcl_pres, lcl_temp, unit aware values, or None if there is no usable surface
    def lcl(self):
        sfc = self._surface_point
        if ((sfc is None) or not sfc.has_temperatures):
            logger.debug("No surface point with temperature and dew point, skipping LCL")
            return None
        lcl_pres, lcl_temp = mc.lcl(sfc.pressure*mu.hPa, sfc.temperature*mu.degC, sfc.dew_point*mu.degC)
        return lcl_pres, lcl_temp

    #Method to list the levels that carry wind
    def wind_data(self):
        return [p for p in self._points if p.has_wind]

    #Method to split the reported winds into components
    #The components come from metpy.calc.wind_components, the same as the
    #uwind and vwind of the sounding, with the sign flipped.
    #Outputs:
    # list of (north, east) tuples in knots, one per level with wind.
    # Components point toward the direction the wind comes from.
    def wind_components(self):
        winds = self.wind_data()
        if (len(winds) == 0):
            return []
        uwind, vwind = mc.wind_components(np.array([p.wind_speed for p in winds], dtype="float")*mu.knot,
            np.array([p.wind_direction for p in winds], dtype="float")*mu.deg)
        uwind = uwind.to(mu.knot).magnitude
        vwind = vwind.to(mu.knot).magnitude
        return [(-float(v), -float(u)) for (u, v) in zip(uwind, vwind)]

    #Method to calculate the shear between consecutive wind levels
    #Outputs:
    # list of WindShear tuples, shear in knots and knots per foot of
    # standard atmosphere altitude
    def wind_shear(self):
        winds = self.wind_data()
        components = self.wind_components()
        shear = []
        for i in range(len(winds)-1):
            dalt = at.standard_altitude(winds[i+1].pressure)-at.standard_altitude(winds[i].pressure)
            if (dalt == 0):
                continue
            north = components[i+1][0]-components[i][0]
            east = components[i+1][1]-components[i][1]
            shear.append(WindShear(winds[i], winds[i+1], north, east, north/dalt, east/dalt))

        #Returning
        return shear

#Returns a UTC datetime for a naive or aware datetime
def as_utc(date):
    if (date.tzinfo is None):
        return date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc)

#Returns the current time in UTC
def utc_now():
    return datetime.now(timezone.utc)
