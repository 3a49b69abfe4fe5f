from .errors import (
    SkyError, InvalidArgumentError, IllegalStateError, ConfigurationOverflowError,
)
from .types import LightingSnapshot, ObjectTransform, SlotState
from .sun_and_stars import SunAndStars
from .dome_mesh import DomeMesh
