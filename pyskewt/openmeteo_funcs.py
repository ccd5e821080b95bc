### This module contains the reader for Open-Meteo forecast API responses.
### A response holds an hourly series for each pressure level, for example
### temperature_850hPa, and is turned into one profile per timestamp.
###
### Recognized per level keys:
###  temperature_, dew_point_, relative_humidity_, wind_speed_,
###  wind_direction_, geopotential_height_  followed by <pressure>hPa
### Recognized single level keys:
###  cape, cin (or convective_inhibition), surface_pressure
###
### Module requirements
### Python 3+

### Importing required modules
import pyskewt.atmos_thermo as at
import pyskewt.sounding as ps
from datetime import datetime, timedelta, timezone
import json
import logging
import re

logger = logging.getLogger(__name__)

LEVEL_KEY = re.compile(r"^([a-z_]+)_(\d+)hPa$")
LEVEL_QUANTITIES = ("temperature", "dew_point", "relative_humidity", "wind_speed", "wind_direction",
    "geopotential_height")

TEMPERATURE_UNITS = {"°C":at.CELSIUS, "°F":at.FAHRENHEIT}
WIND_SPEED_FACTORS = {"kn":1.0, "km/h":at.KNOTS_PER_KMH, "m/s":at.KNOTS_PER_MS,
    "mp/h":at.KNOTS_PER_MPH, "mph":at.KNOTS_PER_MPH}
TIME_FORMATS = ("iso8601", "unixtime")

############################################################################
#++++++++++++++++++++++++++++++ FUNCTIONS +++++++++++++++++++++++++++++++++#
############################################################################

#Converts a temperature reading to Celsius
#Inputs:
# value, float or None
# unit, string, an Open-Meteo unit label such as "°F"
def to_celsius(value, unit):
    if (unit not in TEMPERATURE_UNITS):
        raise ps.UnparseableValueError("Unknown temperature unit {}".format(unit))
    if (value is None):
        return None
    return at.Temperature(value, TEMPERATURE_UNITS[unit]).celsius

#Converts a wind speed reading to knots
def to_knots(value, unit):
    if (unit not in WIND_SPEED_FACTORS):
        raise ps.UnparseableValueError("Unknown wind speed unit {}".format(unit))
    if (value is None):
        return None
    return value*WIND_SPEED_FACTORS[unit]

#Parses one timestamp
#Inputs:
# value, string or number
# time_format, string, iso8601 or unixtime
# utc_offset, int, seconds to subtract from naive local timestamps
#Outputs:
# datetime, UTC, or None for empty timestamps
def parse_time(value, time_format, utc_offset=0):

    if ((value is None) or (value == "")):
        return None

    try:
        if (time_format == "unixtime"):
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        date = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (TypeError, ValueError) as err:
        raise ps.UnparseableValueError("Unable to read time {}".format(value)) from err

    if (date.tzinfo is None):
        date = date.replace(tzinfo=timezone.utc)-timedelta(seconds=utc_offset)

    #Returning
    return date.astimezone(timezone.utc)

#Pulls one hourly series, checking its length against the timestamps
def _series(hourly, key, count):
    values = hourly.get(key)
    if (values is None):
        return None
    if (not isinstance(values, list)) or (len(values) != count):
        raise ps.UnparseableValueError("Series {} does not match the time axis".format(key))
    return values

### Function to read an Open-Meteo response
### Inputs:
###  text, string or bytes, the JSON response
###  temperature_unit, optional, unit label used when hourly_units doesn't name one. Defaults to "°C".
###  wind_speed_unit, optional, unit label used when hourly_units doesn't name one. Defaults to "kn".
### Outputs:
###  list of Profiles ordered by time
def read_openmeteo(text, temperature_unit=None, wind_speed_unit=None):

    text = ps.as_text(text)
    try:
        response = json.loads(text)
    except ValueError as err:
        raise ps.UnparseableValueError("Response is not valid JSON") from err
    if not isinstance(response, dict):
        raise ps.UnparseableValueError("Response is not a JSON object")

    hourly = response.get("hourly")
    if ((not isinstance(hourly, dict)) or ("time" not in hourly)):
        raise ps.MissingHeaderError("Response has no hourly time series")
    units = response.get("hourly_units") or {}

    time_format = units.get("time", "iso8601")
    if (time_format not in TIME_FORMATS):
        raise ps.UnparseableValueError("Unknown time format {}".format(time_format))
    temperature_unit = temperature_unit or "°C"
    wind_speed_unit = wind_speed_unit or "kn"

    times = hourly["time"]
    count = len(times)

    #Group the per level series by pressure
    levels = {}
    for key in hourly.keys():
        match = LEVEL_KEY.match(key)
        if ((match is None) or (match.group(1) not in LEVEL_QUANTITIES)):
            continue
        pres = float(match.group(2))
        levels.setdefault(pres, {})[match.group(1)] = (_series(hourly, key, count), units.get(key))

    cape = _series(hourly, "cape", count)
    cin = _series(hourly, "cin", count)
    if (cin is None):
        cin = _series(hourly, "convective_inhibition", count)
    surface_pressure = _series(hourly, "surface_pressure", count)

    #Build one profile per timestamp
    profiles = []
    utc_offset = response.get("utc_offset_seconds") or 0
    for i, stamp in enumerate(times):

        time = parse_time(stamp, time_format, utc_offset)
        if (time is None):
            logger.debug("Skipping empty timestamp at index {}".format(i))
            continue

        points = []
        for pres in sorted(levels.keys(), reverse=True):
            level = levels[pres]

            def reading(quantity):
                if (quantity not in level):
                    return None, None
                series, unit = level[quantity]
                return series[i], unit

            value, unit = reading("temperature")
            temp = ps.safe_temperature(to_celsius(value, unit or temperature_unit))
            value, unit = reading("dew_point")
            dewp = ps.safe_temperature(to_celsius(value, unit or temperature_unit))
            rh, unit = reading("relative_humidity")
            if ((dewp is None) and (temp is not None) and (rh is not None) and (rh > 0)):
                dewp = ps.safe_temperature(float(at.dewpoint_from_rh(temp, rh)))
            value, unit = reading("wind_speed")
            wspd = ps.safe_wind_speed(to_knots(value, unit or wind_speed_unit))
            wdir, unit = reading("wind_direction")
            height, unit = reading("geopotential_height")

            if all((v is None) for v in (temp, dewp, wspd, wdir, height)):
                continue
            points.append(ps.Point(pres, height=height, temperature=temp, dew_point=dewp,
                wind_direction=wdir, wind_speed=wspd))

        if (len(points) == 0):
            logger.debug("Skipping {}, no level has data".format(time))
            continue

        #Surface is the level closest to the surface pressure
        surface = None
        if ((surface_pressure is not None) and (surface_pressure[i] is not None)):
            surface = points[0]
            for p in points:
                if (abs(p.pressure-surface_pressure[i]) < abs(surface.pressure-surface_pressure[i])):
                    surface = p

        profiles.append(ps.Profile(time, points, elevation=response.get("elevation"), surface_point=surface,
            cape=None if (cape is None) else cape[i], cin=None if (cin is None) else cin[i],
            metadata={"latitude":response.get("latitude"), "longitude":response.get("longitude")}))

    if (len(profiles) == 0):
        raise ps.NoDataError("The response has no usable timestamps")

    #Returning
    return sorted(profiles, key=lambda p: p.time)

#Picks the profile closest in time to a date
#Outputs:
# Profile or None if the list is empty
def closest_profile(profiles, date):
    if (len(profiles) == 0):
        return None
    date = ps.as_utc(date)
    return min(profiles, key=lambda p: abs(p.time-date))
