# Configuration file for the Sphinx documentation builder.
#
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys

# Modules are documented from the repository root, the package is not
# required to be installed.
sys.path.insert(0, os.path.abspath('../../.'))


# -- Project information -----------------------------------------------------

project = 'ddgmesh'
copyright = '2024-25, ddgmesh'
author = 'ddgmesh'

release = '0.1'


# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.autosummary',
    'sphinx.ext.intersphinx',
    'sphinx.ext.mathjax',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
]

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'numpy': ('https://numpy.org/doc/stable', None),
    'scipy': ('https://docs.scipy.org/doc/scipy', None)
}

autosummary_generate = True

exclude_patterns = []

toc_object_entries = False


# -- Options for AutoDoc output -------------------------------------------

def skip(app, what, name, obj, skip, options):
    if name in ('__init__', '__new__'):
        return True

    return None


def setup(app):
    app.connect('autodoc-skip-member', skip)


# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_show_sourcelink = True
