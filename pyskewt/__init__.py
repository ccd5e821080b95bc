# PySkewt, sounding decoders and skew-T log-p diagram geometry.
# The main entry points are pyskewt.pyskewt.PySkewt and pyskewt.pyskewt.decode.

__version__ = "0.1.0"
