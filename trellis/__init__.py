__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'trellis'
__author__ = 'Trellis Developers'
__license__ = 'MIT'
__version__ = "0.1.0"

from .arguments import *
from .faults import *
from .manager import *
from .nodes import *
from .sources import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the arguments
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the manager
__all__ += manager.__all__  # type: ignore[attr-defined]
# Load the exposed API of the nodes
__all__ += nodes.__all__  # type: ignore[attr-defined]
# Load the exposed API of the sources
__all__ += sources.__all__  # type: ignore[attr-defined]
