# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------
# https://www.sphinx-doc.org/en/master/usage/configuration.html#project-information

from sphinx_pyproject import SphinxConfig
from sphinx.ext.autodoc import between
from chunkstore import __version__ as ver

config = SphinxConfig("../pyproject.toml", globalns=globals(), config_overrides = {"version": ver})

# -- General configuration ---------------------------------------------------
# https://www.sphinx-doc.org/en/master/usage/configuration.html#general-configuration

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.intersphinx',
    'sphinx_rtd_theme',
]

exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store', 'chunkstore.tests*', '*conftest*']
intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'marshmallow': ('https://marshmallow.readthedocs.io/en/stable/', None),
}


# -- Options for HTML output -------------------------------------------------
# https://www.sphinx-doc.org/en/master/usage/configuration.html#options-for-html-output

html_theme = "sphinx_rtd_theme"

# Flags
add_module_names = False

# Remove OpenAPI docstrings delimited by (---).
def setup(app):
    app.connect('autodoc-process-docstring', between(marker="---", exclude=True))
    return app
