import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "Venue Reservations"
author = "Venue Reservations maintainers"
release = "0.3.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]

templates_path = ["_templates"]
exclude_patterns: list[str] = []

html_theme = "sphinx_rtd_theme"
