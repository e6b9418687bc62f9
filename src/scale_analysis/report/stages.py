from enum import Enum


class Stage(str, Enum):
    LOAD = "load"
    FIT = "fit"
    ASSESS = "assess"
    PARAMETERS = "parameters"
    SCORE = "score"
    PLOT = "plot"
    WRITE = "write"
