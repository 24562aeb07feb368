"""
EPIC Image Downloader

Downloads a day's worth of NASA EPIC (DSCOVR Earth Polychromatic Imaging
Camera) images into '<target-folder>/<YYYY-MM-DD>/'.

Workflow:
- Date resolution, falling back to the last day with images
- Destination staging with overwrite confirmation
- Sequential fetch-and-save of every image in the day's manifest
"""

__version__ = "1.0.0"
__author__ = "EPIC Downloader Development Team"
