"""
Configuration constants for nutritional-status classification.
"""

# Reference data location (importlib.resources package)
REFERENCE_DATA_PACKAGE = "nutristat.data"
REFERENCE_FILE_PATTERN = "{indicator}_{sex}.csv"
REFERENCE_COLUMNS = [
    "Month",
    "SD3neg",
    "SD2neg",
    "SD1neg",
    "SD0",
    "SD1",
    "SD2",
    "SD3",
]

# Supported age window of the WHO tables (inclusive, months)
MIN_AGE_MONTHS = 0
MAX_AGE_MONTHS = 60
MONTHS_PER_YEAR = 12

# Classification outcome when no reference row applies
NO_DATA = "No Data"

# BMI is stored with this many decimals
BMI_DECIMALS = 2

# Sex values as stored by callers, and their child-identity letters
SEX_MALE = "Laki-laki"
SEX_FEMALE = "Perempuan"
SEX_CODES = {SEX_MALE: "L", SEX_FEMALE: "P"}
SEX_ALIASES = {
    "M": SEX_MALE,
    "L": SEX_MALE,
    "MALE": SEX_MALE,
    "LAKI-LAKI": SEX_MALE,
    "F": SEX_FEMALE,
    "P": SEX_FEMALE,
    "FEMALE": SEX_FEMALE,
    "PEREMPUAN": SEX_FEMALE,
}

# Unit-mismatch heuristics for batch evaluation
HEIGHT_METRES_MEAN = 3.0  # mean height below this suggests metres
HEIGHT_NON_CM_P95 = 140.0  # under-fives above this suggest a non-cm unit
WEIGHT_POUNDS_P99 = 40.0  # under-fives above this suggest lbs
