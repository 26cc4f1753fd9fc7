import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class SplashScreen(BaseModel):
    launch_show_duration: int = Field(3000, alias="launchShowDuration")
    launch_auto_hide: bool = Field(True, alias="launchAutoHide")
    background_color: str = Field("#ffffffff", alias="backgroundColor")
    android_splash_resource_name: str = Field("splash", alias="androidSplashResourceName")
    android_scale_type: str = Field("CENTER_CROP", alias="androidScaleType")
    show_spinner: bool = Field(True, alias="showSpinner")
    android_spinner_style: str = Field("large", alias="androidSpinnerStyle")
    ios_spinner_style: str = Field("small", alias="iosSpinnerStyle")
    spinner_color: str = Field("#999999", alias="spinnerColor")
    splash_full_screen: bool = Field(True, alias="splashFullScreen")
    splash_immersive: bool = Field(True, alias="splashImmersive")
    layout_name: str = Field("launch_screen", alias="layoutName")
    use_dialog: bool = Field(True, alias="useDialog")


class ShellServer(BaseModel):
    url: Optional[str] = None
    cleartext: bool = False


class ShellConfig(BaseModel):
    """Configuration consumed by the mobile wrapper around the web app"""
    app_id: str = Field(..., alias="appId")
    app_name: str = Field(..., alias="appName")
    web_dir: str = Field("dist", alias="webDir")
    server: Optional[ShellServer] = None
    splash_screen: SplashScreen = Field(default_factory=SplashScreen, alias="splashScreen")


def load_shell_config(path: Path) -> ShellConfig:
    with open(path, "r", encoding="utf-8") as f:
        return ShellConfig.model_validate(json.load(f))
