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

__all__ = ['add_subparser', 'get_parser', 'subparsers']

import argparse
import platform
import sys


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Help formatter that lists the subcommands in sorted order"""

    def _iter_indented_subactions(self, action):
        try:
            get_subactions = action._get_subactions
        except AttributeError:
            pass
        else:
            self._indent()
            if isinstance(action, argparse._SubParsersAction):
                for subaction in sorted(get_subactions(), key=lambda x: x.dest):
                    yield subaction
            else:
                for subaction in get_subactions():
                    yield subaction
            self._dedent()


def get_version():
    from amlgen.version import version

    return "amlgen %s (%s %s on %s %s)" % (
        version,
        platform.python_implementation(),
        '.'.join(str(x) for x in sys.version_info[:3]),
        platform.system(),
        platform.release(),
    )


#
# Create the argparse parser for amlgen
#
doc = "Compile algebraic models into solver-ready instances and solve them."
epilog = """
-------------------------------------------------------------------------
Each capability is a subcommand of 'amlgen' with its own command-line
options.  Use the -h option to print details for a subcommand.  For
example, type

   amlgen solve -h

to print information about the `solve` subcommand.
"""
_amlgen_parser = argparse.ArgumentParser(
    prog='amlgen', description=doc, epilog=epilog, formatter_class=CustomHelpFormatter
)
_amlgen_parser.add_argument("--version", action="version", version=get_version())
_amlgen_subparsers = _amlgen_parser.add_subparsers(
    dest='subparser_name', title='subcommands'
)

subparsers = []


def add_subparser(name, **args):
    """
    Add a subparser to the 'amlgen' command.
    """
    func = args.pop('func', None)
    parser = _amlgen_subparsers.add_parser(name, **args)
    subparsers.append(name)
    if func is not None:
        parser.set_defaults(func=func)
    return parser


def get_parser():
    """
    Return the parser used by the 'amlgen' command.
    """
    return _amlgen_parser
