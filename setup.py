#  ___________________________________________________________________________
#
#  amlgen: Algebraic Modeling Language instance GENerator
#  Copyright (c) 2008-2025
#  National Technology and Engineering Solutions of Sandia, LLC
#  Under the terms of Contract DE-NA0003525 with National Technology and
#  Engineering Solutions of Sandia, LLC, the U.S. Government retains certain
#  rights in this software.
#  This software is distributed under the 3-clause BSD License.
#  ___________________________________________________________________________

"""
Script to generate the installer for amlgen.
"""

import os
from setuptools import setup, find_packages


def import_amlgen_module(*path):
    _module_globals = dict(globals())
    _module_globals['__name__'] = None
    _source = os.path.join(os.path.dirname(__file__), *path)
    with open(_source) as _FILE:
        exec(_FILE.read(), _module_globals)
    return _module_globals


def get_version():
    # Source amlgen/version/info.py to get the version number
    return import_amlgen_module('amlgen', 'version', 'info.py')['__version__']


setup_kwargs = dict(
    name='amlgen',
    version=get_version(),
    description='Algebraic modeling language front end: parse, bind and '
    'generate LP/MIP instances',
    license='BSD',
    python_requires='>=3.9',
    install_requires=['ply', 'numpy', 'scipy>=1.9', 'pyyaml'],
    extras_require={
        'tests': ['coverage', 'parameterized', 'pytest'],
    },
    packages=find_packages(exclude=("scripts", "examples")),
    entry_points="""
        [console_scripts]
        amlgen=amlgen.scripting.driver:main_console_script
    """,
)


setup(**setup_kwargs)
