"""Ray and Gaussian beam tracing of sound through a layered ocean."""

__version__ = "0.1.0"
__all__ = ["splines", "geometry", "config", "rays", "beams"]