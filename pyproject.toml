[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dmgaudio"
version = "0.1.0"
description = "Game Boy APU emulation with an I2S sample sink, a FAT-style file API and disk/RTC helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["game boy", "dmg", "apu", "emulator", "audio", "i2s", "fat", "sd card"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dmgaudio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
