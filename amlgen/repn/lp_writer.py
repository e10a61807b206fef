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

import logging
from io import StringIO

from amlgen.common.config import ConfigDict, ConfigValue, Bool
from amlgen.common.timing import TicTocTimer
from amlgen.core.label import cpxlp_label_from_name
from amlgen.model.decl import minimize

logger = logging.getLogger(__name__)
inf = float('inf')
neg_inf = float('-inf')


class LPWriterInfo(object):
    """Return type for LPWriter.write()

    Attributes
    ----------
    symbol_map: dict

        Maps each label written to the LP file to the corresponding
        row or column label of the instance.

    """

    def __init__(self, symbol_map):
        self.symbol_map = symbol_map


class _Labeler(object):
    """Generate unique LP-legal names from instance labels"""

    def __init__(self, prefix):
        self.prefix = prefix
        self.used = set()
        self.symbol_map = {}

    def __call__(self, label, source=None):
        """Return a unique symbol for ``label``

        The symbol map records ``source`` (``label`` when omitted) as the
        instance label the symbol stands for.
        """
        base = self.prefix + cpxlp_label_from_name(label)
        symbol = base
        i = 1
        while symbol in self.used:
            symbol = '%s_%d' % (base, i)
            i += 1
        self.used.add(symbol)
        self.symbol_map[symbol] = label if source is None else source
        return symbol


class LPWriter(object):
    CONFIG = ConfigDict('lpwriter')
    CONFIG.declare(
        'show_section_timing',
        ConfigValue(
            default=False,
            domain=Bool,
            description='Print timing after writing each section of the LP file',
        ),
    )
    CONFIG.declare(
        'symbolic_solver_labels',
        ConfigValue(
            default=True,
            domain=Bool,
            description='Write variables/constraints using model names',
            doc="""
            Export variables and constraints to the LP file using
            names derived from the instance labels (otherwise the
            columns are written as x1, x2, ... and the rows as c1,
            c2, ...).
            """,
        ),
    )

    def __init__(self):
        self.config = self.CONFIG()

    def __call__(self, instance, filename, **options):
        if filename is None:
            filename = instance.name + ".lp"
        with open(filename, 'w', newline='') as FILE:
            info = self.write(instance, FILE, **options)
        return filename, info.symbol_map

    def write(self, instance, ostream, **options):
        """Write an instance in CPLEX LP format.

        Returns
        -------
        LPWriterInfo

        Parameters
        ----------
        instance: Instance
            The generated instance to write out.

        ostream: io.TextIOBase
            The text output stream where the LP "file" will be written.
            Could be an opened file or a io.StringIO.

        """
        config = self.config(options)
        return _LPWriter_impl(ostream, config).write(instance)


class _LPWriter_impl(object):
    def __init__(self, ostream, config):
        self.ostream = ostream
        self.config = config

    def write(self, instance):
        timing_logger = logging.getLogger('amlgen.timing.writer')
        timer = TicTocTimer(logger=timing_logger)
        with_debug_timing = self.config.show_section_timing

        ostream = self.ostream
        symbolic = self.config.symbolic_solver_labels
        col_labeler = _Labeler('')
        row_labeler = _Labeler('')
        if symbolic:
            col_names = [col_labeler(col.label) for col in instance.columns]
        else:
            col_names = ['x%d' % (j + 1) for j in range(len(instance.columns))]
            col_labeler.symbol_map.update(
                zip(col_names, (col.label for col in instance.columns))
            )
        self.col_names = col_names
        # The columns that actually appear in the file
        self.referenced = set()

        ostream.write("\\* Source amlgen model name=%s *\\\n\n" % (instance.name,))

        #
        # Process objective
        #
        obj = instance.objective
        obj_symbol = cpxlp_label_from_name(obj.name) if symbolic else 'obj'
        ostream.write(
            ("min \n%s:\n" if obj.sense == minimize else "max \n%s:\n") % (obj_symbol,)
        )
        coefficients = obj.coefficients
        if obj.constant or not coefficients:
            # Most LP readers do not accept constants in the objective
            # (or an empty objective): write the constant as the
            # coefficient of a variable fixed at 1.
            coefficients = coefficients + ((None, obj.constant),)
        self.write_expression(ostream, coefficients)
        if with_debug_timing:
            timer.toc('Objective %s', obj.name)

        ostream.write("\ns.t.\n")

        #
        # Tabulate constraints
        #
        last_name = None
        for i, row in enumerate(instance.rows):
            if with_debug_timing and row.name != last_name and last_name is not None:
                timer.toc('Constraint %s', last_name)
            last_name = row.name
            if symbolic:
                symbol = cpxlp_label_from_name(row.label)
            else:
                symbol = 'c%d' % (i + 1,)
            lb, ub = row.lb, row.ub
            if lb == ub:
                label = row_labeler('c_e_%s_' % (symbol,), row.label)
                ostream.write('\n%s:\n' % (label,))
                self.write_expression(ostream, row.coefficients)
                ostream.write('= %s\n' % (_num(lb),))
            elif lb != neg_inf and ub != inf:
                # We will need the constraint body twice.  Generate
                # in a buffer so we only have to do that once.
                buf = StringIO()
                self.write_expression(buf, row.coefficients)
                buf = buf.getvalue()
                label = row_labeler('r_l_%s_' % (symbol,), row.label)
                ostream.write('\n%s:\n' % (label,))
                ostream.write(buf)
                ostream.write('>= %s\n' % (_num(lb),))
                label = row_labeler('r_u_%s_' % (symbol,), row.label)
                ostream.write('\n%s:\n' % (label,))
                ostream.write(buf)
                ostream.write('<= %s\n' % (_num(ub),))
            elif lb != neg_inf:
                label = row_labeler('c_l_%s_' % (symbol,), row.label)
                ostream.write('\n%s:\n' % (label,))
                self.write_expression(ostream, row.coefficients)
                ostream.write('>= %s\n' % (_num(lb),))
            else:
                label = row_labeler('c_u_%s_' % (symbol,), row.label)
                ostream.write('\n%s:\n' % (label,))
                self.write_expression(ostream, row.coefficients)
                ostream.write('<= %s\n' % (_num(ub),))

        if with_debug_timing and last_name is not None:
            # report the last constraint
            timer.toc('Constraint %s', last_name)

        if not instance.rows:
            logger.warning(
                "Instance '%s' has no constraints; the LP file contains only "
                "the ONE_VAR_CONSTANT row",
                instance.name,
            )
            self.referenced.add(None)
        if None in self.referenced:
            ostream.write('\nc_e_ONE_VAR_CONSTANT:\n+1 ONE_VAR_CONSTANT\n= 1\n')

        ostream.write("\nbounds")

        # Track the integer and binary variables, so you can output
        # their status later.
        integer_vars = []
        binary_vars = []
        for j, col in enumerate(instance.columns):
            if j not in self.referenced:
                continue
            v_symbol = col_names[j]
            if col.domain == 'binary':
                binary_vars.append(v_symbol)
            elif col.domain == 'integer':
                integer_vars.append(v_symbol)
            lb = '-inf' if col.lb == neg_inf else _num(col.lb)
            ub = '+inf' if col.ub == inf else _num(col.ub)
            ostream.write("\n   %s <= %s <= %s" % (lb, v_symbol, ub))
        if None in self.referenced:
            ostream.write("\n   1 <= ONE_VAR_CONSTANT <= 1")

        if integer_vars:
            ostream.write("\ngeneral\n  ")
            ostream.write("\n  ".join(integer_vars))

        if binary_vars:
            ostream.write("\nbinary\n  ")
            ostream.write("\n  ".join(binary_vars))

        ostream.write("\nend\n")

        symbol_map = dict(col_labeler.symbol_map)
        symbol_map.update(row_labeler.symbol_map)
        info = LPWriterInfo(symbol_map)
        if with_debug_timing:
            timer.toc("Generated LP representation", delta=False)
        return info

    def write_expression(self, ostream, coefficients):
        col_names = self.col_names
        for j, coef in coefficients:
            self.referenced.add(j)
            name = 'ONE_VAR_CONSTANT' if j is None else col_names[j]
            if coef < 0:
                ostream.write('%s %s\n' % (_num(coef), name))
            else:
                ostream.write('+%s %s\n' % (_num(coef), name))


def _num(val):
    if val.__class__ is float and val.is_integer():
        val = int(val)
    return str(val)


def write_lp(instance, ostream, **options):
    """Write ``instance`` to ``ostream`` in CPLEX LP format"""
    return LPWriter().write(instance, ostream, **options)
