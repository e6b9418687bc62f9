# Internal response code for a missing cell
MISSING_VALUE = -1

# Logistic scaling constant linking the logistic and normal-ogive metrics
LOGISTIC_SCALING_CONSTANT = 1.702

# Category indices are stored as int8
MAX_CATEGORIES = 127
