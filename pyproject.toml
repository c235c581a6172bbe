[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pixelops"
version = "0.4.2"
description = "Colour search, picture matching, colour-block and line detection, and dictionary OCR on in-memory BGRA images"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["image", "template matching", "ocr", "color search", "a-star", "pathfinding"]
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
    "Topic :: Scientific/Engineering :: Image Recognition",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pixelops"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
