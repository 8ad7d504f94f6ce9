"""EduPage portal client package.

Keep package import lightweight; import submodules explicitly where needed.
"""

__version__ = "1.0.0"
__all__ = [
	"auth",
	"client",
	"config",
	"coordinator",
	"exceptions",
	"models",
	"storage",
	"timeline",
	"timetable",
]
