"""Services package for VisionStudio."""
