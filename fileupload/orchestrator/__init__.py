"""Orchestrator package - coordinates uploaders and their transfers."""
from .core import CHANGE_EVENT, UploadStore
from .dispatcher import UploadDispatcher
from .models import Uploader

__all__ = ["UploadStore", "UploadDispatcher", "Uploader", "CHANGE_EVENT"]
