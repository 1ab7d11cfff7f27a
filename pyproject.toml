[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "yongdeng_eco"
version = "0.1.0"
description = "HTTP backend for the Yongdeng ecology visualization: gridcode queries over risk and land-usage layers, user registration and login."
requires-python = ">=3.10"
keywords = ["ecology", "gis", "postgis", "wkt", "flask", "visualization", "jwt"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Scientific/Engineering :: GIS",
]
dependencies = [
    "flask>=2.3",
    "sqlalchemy>=2.0",
    "bcrypt>=4.0",
    "pyjwt>=2.8",
    "shapely>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
yongdeng-eco = "yongdeng_eco.app:main"

[tool.hatch.build.targets.wheel]
packages = ["yongdeng_eco"]

[tool.hatch.build.targets.sdist]
include = ["yongdeng_eco", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
