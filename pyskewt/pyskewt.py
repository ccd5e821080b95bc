### This module contains the PySkewt class
### A PySkewt object decodes a sounding from one of several common text
### formats into Profiles and lays them out on a skew-T log-p diagram.
### Drawing is left to the caller, the diagram is returned as paths in a
### unit square.
###
### Currently supports:
###  RAOB/RUC - NOAA/ESRL fixed column soundings (Op40, Bak40, NAM, GFS, RAOB)
###  WMO/TTAA - WMO TEMP bulletins, parts A and B
###  OPENMETEO - Open-Meteo forecast API JSON, one profile per hour
###  UWY - University of Wyoming CSV soundings
###
### Module requirements
### Python 3+
### MetPy 1.0+
### Numpy

### Importing required modules
import pyskewt.openmeteo_funcs as of
import pyskewt.raob_funcs as rf
import pyskewt.skewt_plot as sp
import pyskewt.sounding as ps
import pyskewt.uwy_funcs as uf
import pyskewt.wmo_funcs as wf
import logging

logger = logging.getLogger(__name__)

SOUNDING_FORMATS = ("RAOB", "RUC", "WMO", "TTAA", "OPENMETEO", "UWY")

### Function to decode sounding data
### Inputs:
###  data, string or bytes, the raw sounding
###  sformat, string, one of SOUNDING_FORMATS (case insensitive)
###  station, optional, WMO station number to pick out of a WMO bulletin
###  date, optional, datetime supplying the month and year of WMO messages
###  temperature_unit, wind_speed_unit, optional, Open-Meteo unit labels for series without one
###
### Outputs:
###  list of Profiles
def decode(data, sformat, station=None, date=None, temperature_unit=None, wind_speed_unit=None):

    sformat = sformat.upper()

    #Now read in the sounding based on it's format
    if (sformat in ("RAOB", "RUC")): # RAOB/RUC fixed column text
        profiles = [rf.read_raob(data)]

    elif (sformat in ("WMO", "TTAA")): # WMO TEMP bulletin
        profiles = wf.read_wmo(data, station=station, reference_time=date)

    elif (sformat == "OPENMETEO"): # Open-Meteo JSON
        profiles = of.read_openmeteo(data, temperature_unit=temperature_unit, wind_speed_unit=wind_speed_unit)

    elif (sformat == "UWY"): # University of Wyoming CSV
        profiles = [uf.read_uwy(data)]

    else: #Unrecognized format
        raise ps.UnknownFormatError("Unrecognized sounding format: {}".format(sformat))

    logger.info("Decoded {} {} profile(s)".format(len(profiles), sformat))

    #Returning
    return profiles

############################################################
#---------------------     PYSKEWT     ---------------------#
############################################################
class PySkewt:

    ### Constructor Method
    ### Inputs:
    ###  data, string or bytes, the raw sounding
    ###  sformat, string, some options are: "RAOB", "WMO", "OPENMETEO", "UWY" see SOUNDING_FORMATS
    ###  station, optional, WMO station number for bulletins holding several stations
    ###  date, optional, datetime. Selects the profile closest in time and supplies
    ###   the month and year of WMO messages. (UTC)
    ###  temperature_unit, wind_speed_unit, optional, see decode
    ###
    ### Outputs:
    ###  None
    def __init__(self, data, sformat, station=None, date=None, temperature_unit=None, wind_speed_unit=None):

        #First attach format and request details to object
        self.sformat = sformat.upper()
        self.station = station
        self.date = date

        #Decode and pick the working profile
        self.profiles = decode(data, self.sformat, station=station, date=date,
            temperature_unit=temperature_unit, wind_speed_unit=wind_speed_unit)
        if (date is not None):
            self.profile = of.closest_profile(self.profiles, date)
        else:
            self.profile = self.profiles[0]

        #Returning
        return

    #Method to select another decoded profile by time
    def select(self, date):
        self.profile = of.closest_profile(self.profiles, date)
        return self.profile

    #Method to lay out a skew-T for the working profile
    #Inputs:
    # display, keyword arguments for SkewtPlot (ranges, spacings, skew, isohumes ...)
    #Outputs:
    # SkewtPlot
    def skewt(self, **display):
        return sp.SkewtPlot(self.profile, **display)

    #Method to compute every path of the skew-T for the working profile
    def geometry(self, **display):
        return sp.compute_geometry(self.profile, **display)

    #Unit aware sounding of the working profile
    @property
    def sounding(self):
        return self.profile.sounding
