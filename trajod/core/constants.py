"""
Physical and mathematical constants.

Sources:
    - IAU 2012 for astronomical constants
    - JPL DE430 header values for planetary gravitational parameters
    - Standish, "Keplerian Elements for Approximate Positions of the Major
      Planets" (JPL SSD), Table 1, for J2000 mean elements and rates
"""

import numpy as np

# ---------------------------------------------------------------------------
# Mathematical constants
# ---------------------------------------------------------------------------
TWO_PI = 2.0 * np.pi
DEG2RAD = np.pi / 180.0
RAD2DEG = 180.0 / np.pi

# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------
SECONDS_PER_DAY = 86400.0
DAYS_PER_CENTURY = 36525.0
SECONDS_PER_CENTURY = SECONDS_PER_DAY * DAYS_PER_CENTURY
JULIAN_DAY_J2000 = 2451545.0            # Epoch zero of all trajod times

# ---------------------------------------------------------------------------
# Astronomical constants
# ---------------------------------------------------------------------------
AU_KM = 149597870.7                     # Astronomical unit [km]
C_LIGHT = 299792.458                    # Speed of light [km/s]

# ---------------------------------------------------------------------------
# Gravitational parameters [km³/s²]
# ---------------------------------------------------------------------------
MU_SUN = 1.32712440018e11
MU_MERCURY = 22031.78
MU_VENUS = 324858.59
MU_EARTH = 398600.4418
MU_MOON = 4902.800066
MU_MARS = 42828.37
MU_JUPITER = 126686534.0
MU_SATURN = 37931187.0
MU_URANUS = 5793939.0
MU_NEPTUNE = 6836529.0
MU_PLUTO = 871.0

GRAVITATIONAL_PARAMETERS = {
    "Sun": MU_SUN,
    "Mercury": MU_MERCURY,
    "Venus": MU_VENUS,
    "Earth": MU_EARTH,
    "Moon": MU_MOON,
    "Mars": MU_MARS,
    "Jupiter": MU_JUPITER,
    "Saturn": MU_SATURN,
    "Uranus": MU_URANUS,
    "Neptune": MU_NEPTUNE,
    "Pluto": MU_PLUTO,
}

# ---------------------------------------------------------------------------
# Approximate heliocentric ecliptic J2000 mean elements
# Per body: ((a [AU], e, I [deg], L [deg], long.peri [deg], long.node [deg]),
#            (rates of the same per Julian century))
# "Earth" is the Earth-Moon barycentre.
# ---------------------------------------------------------------------------
PLANET_MEAN_ELEMENTS = {
    "Mercury": ((0.38709927, 0.20563593, 7.00497902,
                 252.25032350, 77.45779628, 48.33076593),
                (0.00000037, 0.00001906, -0.00594749,
                 149472.67411175, 0.16047689, -0.12534081)),
    "Venus": ((0.72333566, 0.00677672, 3.39467605,
               181.97909950, 131.60246718, 76.67984255),
              (0.00000390, -0.00004107, -0.00078890,
               58517.81538729, 0.00268329, -0.27769418)),
    "Earth": ((1.00000261, 0.01671123, -0.00001531,
               100.46457166, 102.93768193, 0.0),
              (0.00000562, -0.00004392, -0.01294668,
               35999.37244981, 0.32327364, 0.0)),
    "Mars": ((1.52371034, 0.09339410, 1.84969142,
              -4.55343205, -23.94362959, 49.55953891),
             (0.00001847, 0.00007882, -0.00813131,
              19140.30268499, 0.44441088, -0.29257343)),
    "Jupiter": ((5.20288700, 0.04838624, 1.30439695,
                 34.39644051, 14.72847983, 100.47390909),
                (-0.00011607, -0.00013253, -0.00183714,
                 3034.74612775, 0.21252668, 0.20469106)),
    "Saturn": ((9.53667594, 0.05386179, 2.48599187,
                49.95424423, 92.59887831, 113.66242448),
               (-0.00125060, -0.00050991, 0.00193609,
                1222.49362201, -0.41897216, -0.28867794)),
    "Uranus": ((19.18916464, 0.04725744, 0.77263783,
                313.23810451, 170.95427630, 74.01692503),
               (-0.00196176, -0.00004397, -0.00242939,
                428.48202785, 0.40805281, 0.04240589)),
    "Neptune": ((30.06992276, 0.00859048, 1.77004347,
                 -55.12002969, 44.96476227, 131.78422574),
                (0.00026291, 0.00005105, 0.00035372,
                 218.45945325, -0.32241464, -0.00508664)),
    "Pluto": ((39.48211675, 0.24882730, 17.14001206,
               238.92903833, 224.06891629, 110.30393684),
              (-0.00031596, 0.00005170, 0.00004818,
               145.20780515, -0.04062942, -0.01183482)),
}

# ---------------------------------------------------------------------------
# Default minimum swingby pericenter radii [km]
# Planetary radius plus a safety altitude, as commonly used for MGA design.
# ---------------------------------------------------------------------------
DEFAULT_MINIMUM_PERICENTER_RADII = {
    "Mercury": 2639.7,
    "Venus": 6251.8,
    "Earth": 6578.1,
    "Mars": 3596.2,
    "Jupiter": 72000.0,
    "Saturn": 61000.0,
    "Uranus": 26000.0,
    "Neptune": 25000.0,
    "Pluto": 1395.0,
}
