"""
JAsm — Language and Machine Configuration
=========================================

Every constant the normalizer, resolver, decoder and machine agree on lives
here. Change a value in one place and the whole pipeline follows.
"""

# =============================================================================
#  SOURCE SYNTAX
# =============================================================================
COMMENT_DELIMITER = "//"     # whole-line prefix or trailing suffix
LABEL_SUFFIX = ":"           # "loop:" defines the label "loop"
BLOCK_OPEN = "("             # last token of an ITER_* header
BLOCK_CLOSE = ")"            # a line holding only this closes the block
RANGE_FENCE = "|"            # |A0:A9| or |C0:5|
RANGE_SEPARATOR = ":"
RANGE_ARROW = "->"           # ITER_THROUGH |A0:A3| -> Z0 (


# =============================================================================
#  FILES
# =============================================================================
SOURCE_EXTENSION = ".jasm"   # raw sources must carry this extension
COMPILED_SUFFIX = "~"        # resolved artifact: "prog.jasm" -> "prog.jasm~"
FILE_ENCODING = "utf-8"


# =============================================================================
#  REGISTER FILE
# =============================================================================
REGISTER_TYPES = "ABCDEZ"    # closed set of type letters
REGISTER_COUNT = 10          # digits 0-9 per type letter
DEFAULT_VALUE = 0            # every cell at construction and after FREE
WORD_BITS = 32               # signed two's complement wraparound


# =============================================================================
#  LOGGING
# =============================================================================
LOG_NAME = "jasm"
LOG_FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
#  MACHINE
# =============================================================================
TRACE_LIMIT = 1000           # trace lines kept by Machine(trace=True), newest last
REPLACEMENT_CHAR = "\ufffd"     # _ASCII output for surrogate code points
