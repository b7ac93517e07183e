"""Collaborator providers for VisionStudio."""
