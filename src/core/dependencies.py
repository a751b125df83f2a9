from fastapi import Request

from core.config import Settings
from gallery.services.path_guard import PathGuard
from gallery.services.scanner import DirectoryScanner
from gallery.services.transcoder import Transcoder


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_path_guard(request: Request) -> PathGuard:
    return request.app.state.path_guard


def get_scanner(request: Request) -> DirectoryScanner:
    return request.app.state.scanner


def get_transcoder(request: Request) -> Transcoder:
    return request.app.state.transcoder
