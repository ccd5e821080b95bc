#This script runs the PySkewt decoder for each sounding format in turn.

#First import PySkewt
from pyskewt.pyskewt import PySkewt

#Import other modules
from datetime import datetime, timezone

def read(name):
    with open("../tests/data/{}".format(name)) as fn:
        return fn.read()

#Test the RAOB sounding
sonde = PySkewt(read("san-op40.txt"), "raob")
print("Lines in RAOB sounding: {}".format(len(sonde.profile)))
print("RAOB LCL: {}\n".format(sonde.profile.lcl()))

#Test the WMO bulletin
sonde = PySkewt(read("wmo-bulletin.txt"), "wmo", date=datetime(2023, 5, 20, tzinfo=timezone.utc))
print("Lines in WMO sounding: {}".format(len(sonde.profile)))
print("WMO stations: {}\n".format([p.metadata["station_id"] for p in sonde.profiles]))

#Test the Open-Meteo response
sonde = PySkewt(read("open-meteo.json"), "openmeteo", date=datetime(2024, 11, 8, 1, tzinfo=timezone.utc))
print("Open-Meteo profiles: {}".format(len(sonde.profiles)))
print("Open-Meteo CAPE: {}\n".format(sonde.profile.cape))

#Test the UWY sounding
sonde = PySkewt(read("uwy-sounding.csv"), "uwy")
print("Lines in UWY sounding: {}".format(len(sonde.profile)))
print("UWY surface: {}".format(sonde.profile.surface_point))
