from basinforge.utils import *
from basinforge.expression import *
from basinforge.attractors import *
from basinforge.wiring_diagram import *
from basinforge.boolean_network import *
from basinforge.weighted_network import *
from basinforge.probabilistic import *
from basinforge.config import ANALYSIS_CONFIG

try:
    from basinforge._version import __version__
except ImportError:
    __version__ = 'unknown'
