"""
Media compiler module.

Turns a list of remote images and videos into one normalized MP4: fetches
assets, animates images into clips, normalizes every clip to a single
profile, and joins them with stream copy.
"""

from modules.media_compiler.process import process, run_pipeline

__all__ = ["process", "run_pipeline"]
