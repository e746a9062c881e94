[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lfpreview"
version = "0.1.0"
description = "Terminal file previewer for the lf file manager: image, audio and video thumbnails with metadata, and wrapped text"
requires-python = ">=3.10"
keywords = ["lf", "preview", "terminal", "chafa", "exiftool", "thumbnail"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: File Managers",
]
dependencies = [
    "wcwidth",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lfpreview = "lfpreview.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["lfpreview"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
