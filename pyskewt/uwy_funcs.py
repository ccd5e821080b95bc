### This module contains the reader for University of Wyoming CSV soundings
### (the high resolution radiosonde downloads). Each row is one observation
### of the ascending balloon and the first row is taken as the surface.
###
### Module requirements
### Python 3+

### Importing required modules
import pyskewt.atmos_thermo as at
import pyskewt.sounding as ps
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

#Column names
TIME = "time"
LONGITUDE = "longitude"
LATITUDE = "latitude"
PRESSURE = "pressure_hPa"
HEIGHT = "geopotential height_m"
TEMPERATURE = "temperature_C"
DEW_POINT = "dew point temperature_C"
WIND_DIRECTION = "wind direction_degree"
WIND_SPEED = "wind speed_m/s"

############################################################################
#++++++++++++++++++++++++++++++ FUNCTIONS +++++++++++++++++++++++++++++++++#
############################################################################

#Reads a number from a row, blank and non-numeric fields are missing
def _number(row, columns, name):
    if (name not in columns):
        return None
    try:
        return float(row[columns[name]].strip())
    except ValueError:
        return None

#Parses one data row
#Inputs:
# row, list of strings, the split line
# columns, dictionary of column name to index
#Outputs:
# Point, or None if the row has no usable time or pressure
def parse_row(row, columns):

    try:
        time = datetime.strptime(row[columns[TIME]].strip(), TIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None
    pres = _number(row, columns, PRESSURE)
    if ((pres is None) or (pres <= 0)):
        return None

    wdir = _number(row, columns, WIND_DIRECTION)
    wspd = _number(row, columns, WIND_SPEED)

    #Returning
    return ps.Point(pres, height=_number(row, columns, HEIGHT),
        temperature=ps.safe_temperature(_number(row, columns, TEMPERATURE)),
        dew_point=ps.safe_temperature(_number(row, columns, DEW_POINT)),
        wind_direction=None if (wdir is None) else int(wdir),
        wind_speed=None if (wspd is None) else ps.safe_wind_speed(wspd*at.KNOTS_PER_MS),
        latitude=_number(row, columns, LATITUDE), longitude=_number(row, columns, LONGITUDE), time=time)

### Function to read a UWY CSV sounding
### Inputs:
###  text, string or bytes, the whole file
### Outputs:
###  Profile
def read_uwy(text):

    text = ps.as_text(text)
    lines = [line for line in text.splitlines() if line.strip() != ""]
    if (len(lines) < 2):
        raise ps.NoDataError("The file has no data rows")

    #Header row names the columns
    names = [name.strip() for name in lines[0].split(",")]
    columns = dict((name, i) for i, name in enumerate(names))
    if ((TIME not in columns) or (PRESSURE not in columns)):
        raise ps.MissingHeaderError("Header must name {} and {}".format(TIME, PRESSURE), lines[0])

    #Read in the rows
    points = []
    for line in lines[1:]:
        row = line.split(",")
        if (len(row) < len(names)):
            raise ps.UnparseableLineError("Row has {} fields, expected {}".format(len(row), len(names)), line)
        point = parse_row(row, columns)
        if (point is None):
            logger.debug("Skipping row without time or pressure: {}".format(line))
            continue
        points.append(point)

    if (len(points) == 0):
        raise ps.NoDataError("No row has a usable time and pressure")
    logger.debug("Read {} rows".format(len(points)))

    #First row anchors the profile
    surface = points[0]

    #Returning
    return ps.Profile(surface.time, points, surface_point=surface,
        metadata={"latitude":surface.latitude, "longitude":surface.longitude})
