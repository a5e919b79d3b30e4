# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

project = 'DataParity'
copyright = '2026, DataParity developers'
author = 'DataParity developers'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.autosummary',
    'sphinx.ext.intersphinx',
]

autosummary_generate = True
autodoc_member_order = 'bysource'
templates_path = ['_templates']
exclude_patterns = []

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pyarrow': ('https://arrow.apache.org/docs', None),
    'pandas': ('https://pandas.pydata.org/docs', None),
    'polars': ('https://docs.pola.rs/api/python/stable', None),
}

# -- Options for HTML output -------------------------------------------------

html_theme = 'nature'
html_static_path = ['_static']
