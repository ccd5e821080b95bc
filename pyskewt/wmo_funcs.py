### This module contains the reader for WMO TEMP (FM 35) bulletins.
### Part A (TTAA) carries the surface, mandatory levels, tropopause and
### maximum wind. Part B (TTBB) carries significant temperature levels and,
### after 21212, significant wind levels. Both parts of a station are merged
### into one profile.
###
### Messages end with "=". A message that cannot be decoded is logged and
### dropped without affecting the rest of the bulletin.
###
### Module requirements
### Python 3+

### Importing required modules
import pyskewt.atmos_thermo as at
import pyskewt.sounding as ps
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

PART_A = "TTAA"
PART_B = "TTBB"
NIL = "NIL"
SURFACE_INDICATOR = "99"
TROPOPAUSE_INDICATOR = "88"
MAX_WIND_INDICATORS = ("77", "66")
WIND_SECTION = "21212"
NO_LEVEL = "999"

#Messages up to this far past the reference time still belong to the reference month
REFERENCE_GRACE = timedelta(days=1)

#Mandatory pressure indicators (hPa)
STANDARD_LEVELS = {"00":1000.0, "92":925.0, "85":850.0, "70":700.0, "50":500.0, "40":400.0,
    "30":300.0, "25":250.0, "20":200.0, "15":150.0, "10":100.0}

#Last standard level with wind data, from the last digit of YYGGId
WIND_TOP_LEVELS = {"1":100.0, "2":200.0, "3":300.0, "4":400.0, "5":500.0, "7":700.0, "8":850.0, "0":1000.0}

############################################################################
#++++++++++++++++++++++++++++++ FUNCTIONS +++++++++++++++++++++++++++++++++#
############################################################################

def _is_missing(text):
    return (set(text) == {"/"})

def _digits(text, group):
    try:
        return int(text)
    except ValueError as err:
        raise ps.UnparseableValueError("Unable to read group {}".format(group), group) from err

#Decodes a TTTDD temperature group
#The tenths digit is even for positive and odd for negative temperatures.
#Dew point depressions up to 50 are in tenths, 56 and up are whole degrees plus 50.
#Outputs:
# (temperature, dew point) in 'C, either may be None
def decode_temperature_group(group):

    if ((len(group) != 5) or _is_missing(group)):
        return None, None

    ttt = group[:3]
    dd = group[3:]
    if _is_missing(ttt):
        return None, None

    ttt = _digits(ttt, group)
    temp = ttt/10.0
    if (ttt % 2 == 1):
        temp = -temp

    if _is_missing(dd):
        return temp, None
    dd = _digits(dd, group)
    if (dd <= 50):
        depression = dd/10.0
    else:
        depression = float(dd-50)

    #Returning
    return ps.safe_temperature(temp), ps.safe_temperature(temp-depression)

#Decodes a dddff wind group
#Speeds of 100 or more are carried in the units digit of the direction.
#Outputs:
# (direction in degrees, speed in the message units), either may be None
def decode_wind_group(group):

    if ((len(group) != 5) or _is_missing(group)):
        return None, None

    ddd = group[:3]
    ff = group[3:]
    if (_is_missing(ddd) or _is_missing(ff)):
        return None, None

    ddd = _digits(ddd, group)
    ff = _digits(ff, group)
    extra = ddd % 5

    #Returning
    return ddd-extra, ff+extra*100

#Decodes the PPP of a significant level, tropopause or max wind group
#Values below 100 wrap to 1000 and up.
def decode_pressure_suffix(group):
    ppp = _digits(group[2:5], group)
    if (ppp < 100):
        ppp += 1000
    return float(ppp)

#Decodes a PPhhh mandatory level or 99PPP surface group
#Outputs:
# (pressure in hPa, geopotential height in m or None)
def decode_pressure_group(group):

    if (len(group) != 5):
        raise ps.UnparseableValueError("Pressure groups have five characters", group)

    indicator = group[:2]
    if (indicator == SURFACE_INDICATOR):
        if _is_missing(group[2:]):
            raise ps.UnparseableValueError("Surface pressure is missing", group)
        return decode_pressure_suffix(group), None

    if (indicator not in STANDARD_LEVELS):
        raise ps.UnparseableValueError("Unknown pressure indicator {}".format(indicator), group)
    pres = STANDARD_LEVELS[indicator]

    if _is_missing(group[2:]):
        return pres, None
    hhh = _digits(group[2:], group)

    #Heights are truncated, the level gives back the leading digits.
    #700 and 300 hPa follow the WMO Manual on Codes (FM 35 TEMP, hhh):
    #700 hPa heights of 2500 m and up arrive as 500-999 and take +2000 m,
    #300 hPa heights of 10000 m and up arrive below 300 and take +10000 m.
    if (pres == 1000.0):
        height = hhh if (hhh < 500) else -(hhh-500)
    elif (pres == 925.0):
        height = hhh
    elif (pres == 850.0):
        height = hhh+1000
    elif (pres == 700.0):
        height = hhh+3000 if (hhh < 500) else hhh+2000
    elif (pres >= 400.0):
        height = hhh*10
    elif (pres == 300.0):
        height = hhh*10 if (hhh >= 300) else hhh*10+10000
    else:
        height = hhh*10+10000

    #Returning
    return pres, float(height)

#Resolves the day and hour of a message against a reference time
#The message is assumed to be from the reference month, or the one before
#when that would put it more than REFERENCE_GRACE past the reference.
def _message_time(day, hour, reference):
    year = reference.year
    month = reference.month
    for _ in range(3):
        try:
            date = datetime(year, month, day, hour, tzinfo=timezone.utc)
        except ValueError:
            date = None
        if ((date is not None) and (date <= reference+REFERENCE_GRACE)):
            return date
        month -= 1
        if (month == 0):
            month = 12
            year -= 1
    raise ps.UnparseableValueError("Day {} hour {} is not a valid message time".format(day, hour))

#Merges the fields of a decoded level into the level table
def _add_level(levels, pres, **fields):
    level = levels.setdefault(pres, {})
    for k, v in fields.items():
        if ((v is not None) and (level.get(k) is None)):
            level[k] = v

#Decodes one message
#Inputs:
# groups, list of strings, starting at TTAA or TTBB
# reference, datetime, used to fill in the month and year
#Outputs:
# dictionary with part, station, time, knots, surface (pressure or None) and
# levels keyed by pressure, or None for NIL messages
def decode_message(groups, reference):

    if (len(groups) < 3):
        raise ps.UnparseableValueError("Message is too short", " ".join(groups))
    part = groups[0]
    if any((g == NIL) for g in groups[1:4]):
        return None

    #YYGGI, days above 50 mean knots
    header = groups[1]
    if ((len(header) != 5) or not header[:4].isdigit()):
        raise ps.UnparseableValueError("Unable to read the day and hour", header)
    day = int(header[:2])
    hour = int(header[2:4])
    indicator = header[4]
    knots = (day >= 50)
    if knots:
        day -= 50
    time = _message_time(day, hour, reference)

    station = groups[2]
    if ((len(station) != 5) or not station.isdigit()):
        raise ps.UnparseableValueError("Unable to read the station number", station)

    if (part == PART_A):
        levels, surface = _decode_part_a(groups[3:], indicator)
    else:
        levels, surface = _decode_part_b(groups[3:])

    #Returning
    return {"part":part, "station":station, "time":time, "knots":knots,
        "surface":surface, "levels":levels}

#Reads the mandatory, tropopause and max wind sections of a TTAA message
def _decode_part_a(groups, indicator):

    levels = {}
    surface = None
    wind_top = WIND_TOP_LEVELS.get(indicator)
    i = 0

    #Surface and mandatory levels
    while ((i < len(groups)) and ((groups[i][:2] in STANDARD_LEVELS) or (groups[i][:2] == SURFACE_INDICATOR))):
        pres, height = decode_pressure_group(groups[i])
        is_surface = (groups[i][:2] == SURFACE_INDICATOR)
        has_wind = (indicator != "/") and (is_surface or (wind_top is None) or (pres >= wind_top))
        if (i+1 >= len(groups)):
            raise ps.UnparseableValueError("Level is missing its temperature", groups[i])
        temp, dewp = decode_temperature_group(groups[i+1])
        wdir, wspd = None, None
        if has_wind:
            if (i+2 >= len(groups)):
                raise ps.UnparseableValueError("Level is missing its wind", groups[i])
            wdir, wspd = decode_wind_group(groups[i+2])
            i += 3
        else:
            i += 2

        if is_surface:
            surface = pres
        elif ((surface is not None) and (pres > surface)):
            #Below ground
            continue
        _add_level(levels, pres, height=height, temperature=temp, dew_point=dewp,
            wind_direction=wdir, wind_speed=wspd)

    #Tropopause
    while ((i < len(groups)) and groups[i].startswith(TROPOPAUSE_INDICATOR)):
        if (groups[i][2:] == NO_LEVEL):
            i += 1
            continue
        if (i+2 >= len(groups)):
            raise ps.UnparseableValueError("Tropopause is incomplete", groups[i])
        pres = decode_pressure_suffix(groups[i])
        temp, dewp = decode_temperature_group(groups[i+1])
        wdir, wspd = decode_wind_group(groups[i+2])
        _add_level(levels, pres, temperature=temp, dew_point=dewp, wind_direction=wdir, wind_speed=wspd)
        i += 3

    #Maximum wind, optionally followed by a 4vbva shear group
    while ((i < len(groups)) and (groups[i][:2] in MAX_WIND_INDICATORS)):
        if (groups[i][2:] == NO_LEVEL):
            i += 1
            continue
        if (i+1 >= len(groups)):
            raise ps.UnparseableValueError("Maximum wind is incomplete", groups[i])
        pres = decode_pressure_suffix(groups[i])
        wdir, wspd = decode_wind_group(groups[i+1])
        _add_level(levels, pres, wind_direction=wdir, wind_speed=wspd)
        i += 2
        if ((i < len(groups)) and groups[i].startswith("4") and (len(groups[i]) == 5)):
            i += 1

    #Returning
    return levels, surface

#Tests for a significant level group, nnPPP with nn = 00, 11, 22 ... 99
def _is_significant_group(group):
    return ((len(group) == 5) and group[:2].isdigit() and (group[0] == group[1]))

#Reads the significant temperature and wind sections of a TTBB message
def _decode_part_b(groups):

    levels = {}
    surface = None
    i = 0

    #Significant temperature levels
    while ((i+1 < len(groups)) and _is_significant_group(groups[i])):
        pres = decode_pressure_suffix(groups[i])
        temp, dewp = decode_temperature_group(groups[i+1])
        if (groups[i][:2] == "00"):
            surface = pres
        _add_level(levels, pres, temperature=temp, dew_point=dewp)
        i += 2

    #Significant wind levels
    while ((i < len(groups)) and (groups[i] != WIND_SECTION)):
        i += 1
    i += 1
    while ((i+1 < len(groups)) and _is_significant_group(groups[i])):
        pres = decode_pressure_suffix(groups[i])
        wdir, wspd = decode_wind_group(groups[i+1])
        if (groups[i][:2] == "00"):
            surface = pres
        _add_level(levels, pres, wind_direction=wdir, wind_speed=wspd)
        i += 2

    #Returning
    return levels, surface

#Splits a bulletin into messages, each starting at its TTAA or TTBB group
def split_messages(text):
    messages = []
    for chunk in text.replace("=", " = ").split("="):
        groups = chunk.split()
        for i, g in enumerate(groups):
            if (g in (PART_A, PART_B)):
                messages.append(groups[i:])
                break
        else:
            if (len(groups) > 0):
                logger.debug("Skipping message without TTAA or TTBB: {}".format(" ".join(groups[:4])))
    return messages

#Turns the merged levels of one station into a Profile
def _build_profile(station, time, levels, surface):

    points = []
    for pres in sorted(levels.keys(), reverse=True):
        level = levels[pres]
        if all((level.get(k) is None) for k in ("height", "temperature", "wind_speed")):
            continue
        points.append(ps.Point(pres, height=level.get("height"), temperature=level.get("temperature"),
            dew_point=level.get("dew_point"), wind_direction=level.get("wind_direction"),
            wind_speed=ps.safe_wind_speed(level.get("wind_speed"))))

    if (len(points) == 0):
        raise ps.NoDataError("Station {} has no usable levels".format(station))

    explicit = None
    for p in points:
        if (p.pressure == surface):
            explicit = p
    sfc = ps.select_surface_point(points, explicit)

    #Returning
    return ps.Profile(time, points, surface_point=sfc, metadata={"station_id":station, "wmo_id":int(station)})

### Function to read a WMO TEMP bulletin
### Inputs:
###  text, string or bytes, one or more messages
###  station, optional, WMO station number (string or int). Only that station is returned.
###  reference_time, optional, datetime that supplies the month and year. Defaults to now (UTC).
### Outputs:
###  list of Profiles, one per station and time, ordered by station number
def read_wmo(text, station=None, reference_time=None):

    text = ps.as_text(text)
    if (reference_time is None):
        reference_time = ps.utc_now()
    reference_time = ps.as_utc(reference_time)

    #Decode each message on its own
    stations = {}
    for groups in split_messages(text):
        try:
            message = decode_message(groups, reference_time)
        except ps.SoundingParseError as err:
            logger.warning("Dropping malformed {} message: {}".format(groups[0], err))
            continue
        if (message is None):
            logger.debug("Skipping NIL message")
            continue

        #Convert winds to knots
        factor = 1.0 if message["knots"] else at.KNOTS_PER_MS
        for level in message["levels"].values():
            if (level.get("wind_speed") is not None):
                level["wind_speed"] = level["wind_speed"]*factor

        key = (message["station"], message["time"])
        entry = stations.setdefault(key, {"levels":{}, "surface":None})
        for pres, level in message["levels"].items():
            _add_level(entry["levels"], pres, **level)
        if (entry["surface"] is None):
            entry["surface"] = message["surface"]

    if (len(stations) == 0):
        raise ps.NoDataError("No decodable messages were found")

    #Keep the requested station
    if (station is not None):
        station = "{:05d}".format(int(station))
        stations = dict((k, v) for k, v in stations.items() if (k[0] == station))
        if (len(stations) == 0):
            raise ps.MissingStationError("Station {} is not in the bulletin".format(station))

    profiles = []
    for key in sorted(stations.keys()):
        try:
            profiles.append(_build_profile(key[0], key[1], stations[key]["levels"], stations[key]["surface"]))
        except ps.NoDataError as err:
            logger.warning(str(err))

    if (len(profiles) == 0):
        raise ps.NoDataError("No station in the bulletin has usable levels")

    #Returning
    return profiles
