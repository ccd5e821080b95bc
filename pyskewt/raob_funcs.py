### This module contains the reader for the RAOB/RUC fixed column text format
### as served by the NOAA/ESRL RAOB and RUC sounding archives.
###
### A file looks like:
###  <description>
###  <type> <hour> <day> <month> <year>          header, e.g. "Op40  22  15  Feb  2023"
###  CAPE <v> CIN <v> Helic <v> PW <v>            optional globals line
###  lines of 7 character columns, the first column is the line type:
###   1 station id, 2 sounding checks, 3 station id and other,
###   4 mandatory, 5 significant, 6 wind, 7 tropopause, 8 max wind, 9 surface
###
### 99999 marks a missing value. Pressures and temperatures are in tenths.
###
### Module requirements
### Python 3+

### Importing required modules
import pyskewt.atmos_thermo as at
import pyskewt.sounding as ps
from datetime import datetime, timezone
import logging
import re

logger = logging.getLogger(__name__)

COLUMN_WIDTH = 7
MISSING_VALUE = "99999"

#Line types
STATION_ID = 1
SOUNDING_CHECKS = 2
STATION_ID_AND_OTHER = 3
MANDATORY_LEVEL = 4
SIGNIFICANT_LEVEL = 5
WIND_LEVEL = 6
TROPOPAUSE_LEVEL = 7
MAXIMUM_WIND_LEVEL = 8
SURFACE_LEVEL = 9
LINE_TYPES = (STATION_ID, SOUNDING_CHECKS, STATION_ID_AND_OTHER, MANDATORY_LEVEL, SIGNIFICANT_LEVEL,
    WIND_LEVEL, TROPOPAUSE_LEVEL, MAXIMUM_WIND_LEVEL, SURFACE_LEVEL)

#Lines that become Points
LEVEL_TYPES = (SURFACE_LEVEL, MANDATORY_LEVEL, SIGNIFICANT_LEVEL, WIND_LEVEL, MAXIMUM_WIND_LEVEL)

SOUNDING_TYPES = ("Op40", "Bak40", "NAM", "GFS", "RAOB")
RADIOSONDE_CODES = {10:"VIZ A", 11:"VIZ B", 12:"Space Data Corp"}
WIND_UNITS = ("kt", "ms")

STATION_PATTERN = re.compile(r"\s*1\s+(\d+)\s+(\d+)\s+([\d.]+)([NS]?)\s*([\d.]+)([EW]?)\s+(\d+)\s+(\d+).*")

############################################################################
#++++++++++++++++++++++++++++++ FUNCTIONS +++++++++++++++++++++++++++++++++#
############################################################################

#Splits a line into fixed width columns, whitespace included
def sounding_columns(line):
    return [line[i:i+COLUMN_WIDTH] for i in range(0, len(line), COLUMN_WIDTH)]

#Parses one column
#Inputs:
# text, string, the raw column
# cast, type to convert to (int or float)
#Outputs:
# The value, or None for the missing sentinel and blank columns.
# Raises ValueError for anything else that cannot be converted.
def parse_value(text, cast=int):
    text = text.strip()
    if ((text == MISSING_VALUE) or (text == "")):
        return None
    return cast(text)

#Returns the line type of a data line or None if it isn't one
def line_type(line):
    columns = sounding_columns(line)
    if (len(columns) == 0):
        return None
    try:
        ltype = parse_value(columns[0])
    except ValueError:
        return None
    if (ltype not in LINE_TYPES):
        return None
    return ltype

#Parses the date on the header line, "Op40  22  15  Feb  2023"
#Outputs:
# datetime, UTC
def date_from_header(line):
    text = " ".join(line.split()[1:])
    try:
        date = datetime.strptime(text, "%H %d %b %Y")
    except ValueError as err:
        raise ps.UnparseableLineError("Unable to read the date on the header line", line) from err
    return date.replace(tzinfo=timezone.utc)

#Parses the optional globals line into a dictionary, "CAPE 0 CIN 0 Helic 99999 PW 99999"
def globals_from_line(line):
    columns = [c.strip() for c in sounding_columns(line)]
    values = {}
    for i in range(0, len(columns)-1, 2):
        if (columns[i] == ""):
            continue
        try:
            values[columns[i]] = parse_value(columns[i+1])
        except ValueError as err:
            raise ps.UnparseableLineError("Unable to read {} on the globals line".format(columns[i]), line) from err
    return values

#Parses a station identification line (type 1)
#Outputs:
# dictionary with wban_id, wmo_id, latitude, longitude (degrees, east positive) and altitude (m)
def parse_station_info(line):

    match = STATION_PATTERN.fullmatch(line)
    if (match is None):
        ltype = line_type(line)
        if ((ltype is not None) and (ltype != STATION_ID)):
            raise ps.LineTypeMismatchError("Expected a station identification line", line)
        raise ps.UnparseableLineError("Unable to read the station identification line", line)

    try:
        lat = float(match.group(3))
        lon = float(match.group(5))
    except ValueError as err:
        raise ps.UnparseableLineError("Unable to read the station location", line) from err

    #South and west are negative, west is assumed when no hemisphere is given
    if (match.group(4) == "S"):
        lat = -lat
    if (match.group(6) != "E"):
        lon = -lon

    altitude = parse_value(match.group(7))

    #Returning
    return {"wban_id":parse_value(match.group(1)), "wmo_id":parse_value(match.group(2)),
        "latitude":lat, "longitude":lon, "altitude":altitude}

#Parses a station identification and other data line (type 3)
#Outputs:
# dictionary with station_id, radiosonde_code, radiosonde and wind_speed_unit
def parse_station_and_other(line):

    if (line_type(line) != STATION_ID_AND_OTHER):
        raise ps.LineTypeMismatchError("Expected a station identification and other data line", line)

    columns = sounding_columns(line)[1:]
    columns += [""]*(6-len(columns))
    station_id = columns[1].strip() or None

    try:
        code = parse_value(columns[4])
    except ValueError:
        code = None

    wind_unit = columns[5].strip()
    if (wind_unit not in WIND_UNITS):
        raise ps.UnparseableLineError("Unknown wind speed unit {}".format(wind_unit), line)

    #Returning
    return {"station_id":station_id, "radiosonde_code":code, "radiosonde":RADIOSONDE_CODES.get(code),
        "wind_speed_unit":wind_unit}

#Parses a level line (types 4, 5, 6, 8 and 9)
#Inputs:
# line, string
# wind_speed_unit, optional, "kt" or "ms", speeds in m/s are converted to knots
#Outputs:
# (line type, Point)
def parse_level(line, wind_speed_unit="kt"):

    ltype = line_type(line)
    if (ltype not in LEVEL_TYPES):
        raise ps.LineTypeMismatchError("Expected a level line", line)

    columns = sounding_columns(line)[1:]
    columns += [""]*(6-len(columns))

    try:
        pres = parse_value(columns[0])
    except ValueError as err:
        raise ps.UnparseableLineError("Unable to read the level pressure", line) from err
    if ((pres is None) or (pres <= 0)):
        raise ps.UnparseableLineError("Level line has no pressure", line)

    try:
        height = parse_value(columns[1])
        temp = parse_value(columns[2])
        dewp = parse_value(columns[3])
        wdir = parse_value(columns[4])
        wspd = parse_value(columns[5])
    except ValueError as err:
        raise ps.UnparseableLineError("Unable to read a level value", line) from err

    #Tenths to whole units
    temp = None if (temp is None) else ps.safe_temperature(temp/10.0)
    dewp = None if (dewp is None) else ps.safe_temperature(dewp/10.0)
    if ((wspd is not None) and (wind_speed_unit == "ms")):
        wspd = wspd*at.KNOTS_PER_MS

    point = ps.Point(pres/10.0, height=height, temperature=temp, dew_point=dewp,
        wind_direction=wdir, wind_speed=ps.safe_wind_speed(wspd))

    #Returning
    return ltype, point

### Function to read a RAOB/RUC sounding
### Inputs:
###  text, string or bytes, the whole file
### Outputs:
###  Profile
def read_raob(text):

    text = ps.as_text(text)
    lines = [line for line in text.splitlines() if line.strip() != ""]

    #Locate the first data line
    first_data = None
    for i, line in enumerate(lines):
        if (line_type(line) is not None):
            first_data = i
            break
    if (first_data is None):
        raise ps.EmptyInputError("No data lines were found")

    #Description and header come before the data
    if (first_data < 2):
        raise ps.MissingHeaderError("The description or header line is missing")
    description = lines[0].strip()
    header = lines[1]
    tokens = header.split()
    if ((len(tokens) == 0) or (tokens[0] not in SOUNDING_TYPES)):
        raise ps.MissingHeaderError("Header line does not start with a known sounding type", header)
    sounding_type = tokens[0]
    time = date_from_header(header)

    #Optional globals line
    sounding_globals = {}
    if (first_data > 2):
        sounding_globals = globals_from_line(lines[2])

    #Station lines must be unique
    data_lines = lines[first_data:]
    station_lines = [line for line in data_lines if (line_type(line) == STATION_ID)]
    other_lines = [line for line in data_lines if (line_type(line) == STATION_ID_AND_OTHER)]
    if ((len(station_lines) != 1) or (len(other_lines) != 1)):
        raise ps.DuplicateStationError("Expected exactly one station line of each kind, found {} and {}".format(
            len(station_lines), len(other_lines)))
    station = parse_station_info(station_lines[0])
    other = parse_station_and_other(other_lines[0])

    #Read in the levels
    points = []
    surface = None
    for line in data_lines:
        ltype = line_type(line)
        if (ltype not in LEVEL_TYPES):
            continue
        ltype, point = parse_level(line, other["wind_speed_unit"])
        points.append(point)
        if ((ltype == SURFACE_LEVEL) and (surface is None)):
            surface = point

    if (len(points) == 0):
        raise ps.NoDataError("The sounding has no level lines")
    logger.debug("Read {} levels from {} sounding".format(len(points), sounding_type))

    surface = ps.select_surface_point(points, surface)

    #Elevation is the surface height, then the station altitude
    if ((surface is not None) and (surface.height is not None)):
        elevation = surface.height
    elif (station["altitude"] is not None):
        elevation = station["altitude"]
    else:
        elevation = 0.0

    metadata = {"sounding_type":sounding_type, "description":description,
        "station_id":other["station_id"], "wban_id":station["wban_id"], "wmo_id":station["wmo_id"],
        "latitude":station["latitude"], "longitude":station["longitude"],
        "station_altitude":station["altitude"], "radiosonde_code":other["radiosonde_code"],
        "radiosonde":other["radiosonde"], "wind_speed_unit":other["wind_speed_unit"]}

    #Returning
    return ps.Profile(time, points, elevation=elevation, surface_point=surface,
        cape=sounding_globals.get("CAPE"), cin=sounding_globals.get("CIN"),
        helicity=sounding_globals.get("Helic"), precipitable_water=sounding_globals.get("PW"),
        metadata=metadata)
