from solar_system.config import PRECISION
from solar_system.physics.gravity import configure_precision

# Same setup as main(): physical-unit tests compare at 64-bit tolerances
configure_precision(PRECISION)
