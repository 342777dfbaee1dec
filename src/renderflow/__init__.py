"""renderflow: the consistency core behind iterative AI room renders.

Maps pointer input onto images shown under contain fitting, models zones and
selections, crops sub-images, keeps the branching render history and
serializes edit requests against it.
"""

__version__ = "0.1.0"
