[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "agendakit"
version = "0.1.0"
description = "Calendar agenda, event, attendee and contact models with an in-process event data service"
requires-python = ">=3.10"
dependencies = []
keywords = ["calendar", "agenda", "events", "scheduling", "attendees"]
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
    "Topic :: Office/Business :: Scheduling",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["agendakit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
