# This module contains thermodynamic functions and constants
# that are used in the PySkewt package.
# Source materials are:
# Grant Petty's "A First Course in Atmospheric Thermodynamics" 1st Ed.
# Hardy, B., 1998, "ITS-90 Formulations for Vapor Pressure, Frostpoint Temperature,
#   Dewpoint Temperature, and Enhancement Factors in the Range -100 to +100 C"
# The U.S. Standard Atmosphere, 1976 (troposphere layer only)
#
# Unless stated otherwise, pressures are in hPa and altitudes are
# pressure altitudes in feet, which is how the diagram is laid out.
#
# Requires:
#    Python 3+
#    Numpy
#
# History:
#    Temperature type with conversions pivoting through Celsius
#    Hardy saturation vapor pressure, mixing ratio and its inverse
#    Dry and moist (saturated) lapse of a parcel
#    Standard atmosphere pressure <-> altitude
#    Magnus dew point from relative humidity
#
# Copyright:
# This module may be freely distributed and used provided this header
# remains attached.

#Import required modules
from functools import total_ordering
import numpy

############################################################################
#++++++++++++++++++++++++++++++ CONSTANTS ++++++++++++++++++++++++++++++++++
############################################################################

G = 9.80665 #Gravitational Acceleration (m/s^2)
R_UNIVERSAL = 8.3144598 #Universal Gas Constant (J/mol/K)
M_AIR = 0.0289644 #Molar Mass of Dry Air (kg/mol)
SEA_LEVEL_LAPSE = -0.0065 #Standard Atmosphere Lapse Rate (K/m)
LV = 2.501e6 #Latent Heat of Vaporization at 0'C (J/kg)
E0 = 0.611 #Vapor Pressure at 0'C (kPa)
RD = 287.0 #Gas Constant for Dry Air (J/kg/K)
RV = 461.5 #Gas Constant for Water Vapor (J/kg/K)
EPSILON = RD/RV #Ratio of the gas constants (~0.622)
CP = 1003.5 #Heat Capacity of Dry Air with Constant Pressure (J/kg/K)

P_SEA_LEVEL = 1013.25 #Standard Sea Level Pressure (hPa)
KELVIN_OFFSET = 273.15 #0'C in Kelvin

METERS_PER_FOOT = 0.3048
FEET_PER_KM = 3280.84
DRY_LAPSE_PER_FOOT = 0.00298704 #Dry adiabatic lapse rate ('C/ft)

KNOTS_PER_MS = 1.94384
KNOTS_PER_KMH = 0.539957
KNOTS_PER_MPH = 0.868976

############################################################################
#++++++++++++++++++++++++++++++ TEMPERATURE ++++++++++++++++++++++++++++++++
############################################################################

CELSIUS = "C"
FAHRENHEIT = "F"
KELVIN = "K"
TEMPERATURE_UNITS = (CELSIUS, FAHRENHEIT, KELVIN)

#Converts a value in any temperature unit to Celsius
def to_celsius(value, unit):
    if (unit == CELSIUS):
        return value
    elif (unit == FAHRENHEIT):
        return (value-32.0)*5.0/9.0
    elif (unit == KELVIN):
        return value-KELVIN_OFFSET
    raise ValueError("Unrecognized temperature unit: {}".format(unit))

#Converts a value in Celsius to any temperature unit
def from_celsius(value, unit):
    if (unit == CELSIUS):
        return value
    elif (unit == FAHRENHEIT):
        return value*9.0/5.0+32.0
    elif (unit == KELVIN):
        return value+KELVIN_OFFSET
    raise ValueError("Unrecognized temperature unit: {}".format(unit))

@total_ordering
class Temperature:
    """A temperature tagged with its unit.

    Conversion, equality and ordering always go through Celsius, so
    Temperature(98.6, FAHRENHEIT) == Temperature(37.0).
    """

    def __init__(self, value, unit=CELSIUS):
        if (unit not in TEMPERATURE_UNITS):
            raise ValueError("Unrecognized temperature unit: {}".format(unit))
        self.value = float(value)
        self.unit = unit

    def value_in(self, unit):
        if (unit == self.unit):
            return self.value
        return from_celsius(to_celsius(self.value, self.unit), unit)

    def in_unit(self, unit):
        return Temperature(self.value_in(unit), unit)

    @property
    def celsius(self):
        return self.value_in(CELSIUS)

    @property
    def kelvin(self):
        return self.value_in(KELVIN)

    def __eq__(self, other):
        if not isinstance(other, Temperature):
            return NotImplemented
        return self.celsius == other.celsius

    def __lt__(self, other):
        if not isinstance(other, Temperature):
            return NotImplemented
        return self.celsius < other.celsius

    def __hash__(self):
        return hash(self.celsius)

    def __repr__(self):
        return "Temperature({!r}, {!r})".format(self.value, self.unit)

STANDARD_SEA_LEVEL_TEMPERATURE = Temperature(15.0, CELSIUS)

############################################################################
#++++++++++++++++++++++++++++++ FUNCTIONS ++++++++++++++++++++++++++++++++++
############################################################################

#Dew point from relative humidity via the Magnus formula
#Inputs:
#temp, type=float, temperature in 'C
#rh, type=float, relative humidity in percent
#Outputs:
#Dew point in 'C
def dewpoint_from_rh(temp, rh):
    a = 17.625
    b = 243.04 #'C
    gamma = numpy.log(rh/100.0)+(a*temp)/(b+temp)
    return b*gamma/(a-gamma)

#Dry adiabatic ascent of a parcel, linear in altitude
#Inputs:
#temp, type=float, initial temperature in 'C
#alt1, type=float, initial pressure altitude in feet
#alt2, type=float, final pressure altitude in feet
#Outputs:
#Final temperature in 'C
def dry_parcel_temp(temp, alt1, alt2):
    return temp-DRY_LAPSE_PER_FOOT*(alt2-alt1)

#This function converts vapor pressure to mixing ratio
#Equation 7.22 in Petty
#Inputs:
#pres, type=float, pressure in Pa
#vpres, type=float, vapor pressure in Pa
#Outputs:
#Mixing ratio in kg/kg
def etow(pres, vpres):
    return (EPSILON*vpres)/(pres-vpres)

#Lapse rate of a saturated parcel
#The rate depends on the instantaneous temperature and pressure through
#the saturated mixing ratio, so it has to be re-evaluated at every step.
#Inputs:
#temp, type=float, temperature in Kelvin
#pres, type=float, pressure in hPa
#Outputs:
#Lapse rate in 'C/km
def moist_lapse_rate(temp, pres):
    w = sat_mixing_ratio(temp, pres)
    numerator = 1.0+(LV*w)/(RD*temp)
    denominator = CP+(LV**2*w)/(RV*temp**2)
    return 1000.0*G*numerator/denominator

#Poisson's Equation from Petty
#Inputs:
#p1, type=float, initial pressure in Pa
#p2, type=float, final pressure in Pa
#temp, type=float, initial temperature in Kelvin
#Outputs:
#Final temperature in Kelvin
def poisson(p1, p2, temp):
    return temp*(p2/p1)**(RD/CP)

#Potential Temperature from Petty
#Inputs:
#pres, type=float, pressure in Pa
#temp, type=float, temperature in Kelvin
#Outputs:
#Potential temperature in Kelvin
def pot_temp(pres, temp):
    return poisson(pres, 100000.0, temp)

#Saturated mixing ratio
#Inputs:
#temp, type=float, temperature in Kelvin
#pres, type=float, pressure in hPa
#Outputs:
#Mixing ratio in kg/kg
def sat_mixing_ratio(temp, pres):
    return etow(pres*100.0, sat_vaporpres(temp))

#Raises a saturated parcel, using the lapse rate at its current
#temperature and the given pressure over the whole step.
#Inputs:
#temp, type=float, initial temperature in 'C
#alt1, type=float, initial pressure altitude in feet
#alt2, type=float, final pressure altitude in feet
#pres, type=float, pressure in hPa at which the lapse rate is taken
#Outputs:
#Final temperature in 'C
def saturated_parcel_temp(temp, alt1, alt2, pres):
    lapse = moist_lapse_rate(temp+KELVIN_OFFSET, pres)/FEET_PER_KM
    return temp-lapse*(alt2-alt1)

#Saturation Vapor Pressure from Hardy (1998)
#Valid between -100'C and 100'C
#Inputs:
#temp, type=float, temperature in Kelvin
#Outputs:
#Saturation vapor pressure in Pa
def sat_vaporpres(temp):
    return numpy.exp(-2.8365744e3/temp**2
        -6.028076559e3/temp
        +1.954263612e1
        -2.737830188e-2*temp
        +1.6261698e-5*temp**2
        +7.0229056e-10*temp**3
        -1.8680009e-13*temp**4
        +2.7150305*numpy.log(temp))

#Standard atmosphere pressure altitude of a pressure
#Inputs:
#pres, type=float, pressure in hPa
#Outputs:
#Pressure altitude in feet
def standard_altitude(pres):
    t0 = STANDARD_SEA_LEVEL_TEMPERATURE.kelvin
    exponent = R_UNIVERSAL*SEA_LEVEL_LAPSE/(-G*M_AIR)
    meters = t0*((pres/P_SEA_LEVEL)**exponent-1.0)/SEA_LEVEL_LAPSE
    return meters/METERS_PER_FOOT

#Standard atmosphere pressure at a pressure altitude
#Inputs:
#alt, type=float, pressure altitude in feet
#Outputs:
#Pressure in hPa
def standard_pressure(alt):
    t0 = STANDARD_SEA_LEVEL_TEMPERATURE.kelvin
    exponent = -G*M_AIR/(R_UNIVERSAL*SEA_LEVEL_LAPSE)
    return P_SEA_LEVEL*((t0+alt*METERS_PER_FOOT*SEA_LEVEL_LAPSE)/t0)**exponent

#Temperature at which air at the given pressure is saturated with the given
#mixing ratio. Obtained by inverting the Clausius-Clapeyron relation with
#a constant latent heat.
#Inputs:
#mixr, type=float, mixing ratio in g/kg
#pres, type=float, pressure in hPa
#Outputs:
#Temperature in Kelvin
def temp_from_mixing_ratio(mixr, pres):
    w = mixr/1000.0
    log_term = numpy.log((w*pres/10.0)/(E0*(w+EPSILON)))
    return 1.0/(1.0/KELVIN_OFFSET-(RV/LV)*log_term)
