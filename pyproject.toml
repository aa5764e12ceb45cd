[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gogcli"
version = "0.1.0"
description = "Command-line access to Gmail, Calendar, Contacts and Drive"
requires-python = ">=3.10"
keywords = ["gmail", "calendar", "contacts", "drive", "cli", "google-workspace"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Groupware",
    "Topic :: Communications :: Email",
    "Topic :: Office/Business :: Scheduling",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
gog = "gogcli.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gogcli"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]
