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

import json
import logging
import sys

import yaml

from amlgen.common.config import NonNegativeFloat, NonNegativeInt, PositiveInt
from amlgen.common.errors import ApplicationError, CompilationError
from amlgen.common.log import LogHandler
from amlgen.scripting.parser import add_subparser, get_parser

logger = logging.getLogger('amlgen.scripting')


def _add_model_arguments(parser):
    parser.add_argument('model', help='The model file')
    parser.add_argument(
        '-d',
        '--data',
        action='append',
        default=[],
        metavar='FILE',
        help='A data file (may be repeated); loaded after the data section '
        'of the model file',
    )
    parser.add_argument(
        '--workers',
        type=PositiveInt,
        default=1,
        help='Number of threads generating constraint rows',
    )
    parser.add_argument(
        '--skip-trivial-constraints',
        action='store_true',
        default=False,
        help='Drop satisfied constraint instances that have no variable terms',
    )
    parser.add_argument(
        '--report-timing',
        action='store_true',
        default=False,
        help='Report the time spent in each compilation stage',
    )
    parser.add_argument(
        '--debug', action='store_true', default=False, help='Print debugging output'
    )


def _add_report_arguments(parser):
    parser.add_argument(
        '--format',
        choices=('json', 'yaml'),
        default='json',
        help='The format of the report (default: json)',
    )
    parser.add_argument(
        '-o', '--output', default=None, help='Write the report to this file'
    )


def write_report(report, fmt='json', ostream=None):
    if ostream is None:
        ostream = sys.stdout
    if fmt == 'yaml':
        yaml.safe_dump(report, ostream, default_flow_style=False, sort_keys=False)
    else:
        json.dump(report, ostream, indent=2)
        ostream.write('\n')


def _emit(report, options):
    if options.output:
        with open(options.output, 'w') as OUTPUT:
            write_report(report, options.format, OUTPUT)
    else:
        write_report(report, options.format)


def _compile(options):
    from amlgen.model import load_model

    model = load_model(filename=options.model, report_timing=options.report_timing)
    instance = model.create_instance(
        filename=options.data,
        workers=options.workers,
        skip_trivial_constraints=options.skip_trivial_constraints,
        report_timing=options.report_timing,
    )
    return model, instance


def run_command(command, options):
    """Run a subcommand, reporting compilation failures as diagnostics

    Returns the process exit code: 0 on success and 1 when the model
    cannot be compiled or the solver backend fails.  Terminal solver
    statuses (infeasible, unbounded, time_limit) are not failures.
    """
    root = logging.getLogger('amlgen')
    handler = LogHandler(sys.stderr)
    root.addHandler(handler)
    level = root.level
    if options.debug:
        root.setLevel(logging.DEBUG)
    elif options.report_timing:
        root.setLevel(logging.INFO)
    try:
        command(options)
    except CompilationError as err:
        logger.debug("compilation failed", exc_info=True)
        write_report(err.diagnostic(), options.format)
        return 1
    except (ApplicationError, OSError) as err:
        logger.debug("command failed", exc_info=True)
        write_report(
            {'error': type(err).__name__, 'message': str(err), 'location': None},
            options.format,
        )
        return 1
    finally:
        root.removeHandler(handler)
        root.setLevel(level)
    return 0


#
# amlgen solve
#
def solve_exec(options):
    from amlgen.solvers import SolverFactory

    model, instance = _compile(options)
    with SolverFactory(options.solver, exception=True) as opt:
        results = opt.solve(
            instance,
            tee=options.tee,
            time_limit=options.time_limit,
            node_limit=options.node_limit,
            mip_rel_gap=options.mip_rel_gap,
            presolve=options.presolve,
        )
    report = results.report()
    report['instance'] = instance.summary()
    _emit(report, options)


def _solve(options):
    return run_command(solve_exec, options)


def _solver_names():
    from amlgen.solvers import SolverFactory

    return sorted(SolverFactory)


solve_parser = add_subparser(
    'solve',
    func=_solve,
    help='Compile a model with its data and solve it',
    description='Compile a model with its data, solve the instance and '
    'report the solution.',
)
_add_model_arguments(solve_parser)
_add_report_arguments(solve_parser)
solve_parser.add_argument(
    '--solver', default='highs', choices=_solver_names(), help='The solver backend'
)
solve_parser.add_argument(
    '--time-limit',
    type=NonNegativeFloat,
    default=None,
    metavar='SECONDS',
    help='Time limit for the solver',
)
solve_parser.add_argument(
    '--node-limit',
    type=NonNegativeInt,
    default=None,
    help='Branch-and-bound node limit (mixed-integer models)',
)
solve_parser.add_argument(
    '--mip-rel-gap',
    type=NonNegativeFloat,
    default=None,
    help='Relative optimality gap (mixed-integer models)',
)
solve_parser.add_argument(
    '--no-presolve',
    dest='presolve',
    action='store_false',
    default=True,
    help='Disable the solver presolve phase',
)
solve_parser.add_argument(
    '--tee', action='store_true', default=False, help='Print the solver log'
)


#
# amlgen check
#
def check_exec(options):
    model, instance = _compile(options)
    report = {'status': 'ok', 'model': model.summary(), 'instance': instance.summary()}
    if options.labels:
        report['columns'] = [col.label for col in instance.columns]
        report['rows'] = [row.label for row in instance.rows]
    _emit(report, options)


def _check(options):
    return run_command(check_exec, options)


check_parser = add_subparser(
    'check',
    func=_check,
    help='Compile a model with its data and report the instance size',
    description='Compile a model with its data without solving it.',
)
_add_model_arguments(check_parser)
_add_report_arguments(check_parser)
check_parser.add_argument(
    '--labels',
    action='store_true',
    default=False,
    help='Include the column and row labels in the report',
)


#
# amlgen write
#
def write_exec(options):
    from amlgen.repn import write_lp

    model, instance = _compile(options)
    if options.output:
        with open(options.output, 'w') as OUTPUT:
            write_lp(instance, OUTPUT, symbolic_solver_labels=options.symbolic)
        logger.info("wrote %s", options.output)
    else:
        write_lp(instance, sys.stdout, symbolic_solver_labels=options.symbolic)


def _write(options):
    return run_command(write_exec, options)


write_parser = add_subparser(
    'write',
    func=_write,
    help='Compile a model with its data and write it in CPLEX LP format',
    description='Compile a model with its data and write the instance in '
    'CPLEX LP format.',
)
_add_model_arguments(write_parser)
write_parser.add_argument(
    '-o', '--output', default=None, help='The LP file (default: stdout)'
)
write_parser.add_argument(
    '--numeric-labels',
    dest='symbolic',
    action='store_false',
    default=True,
    help='Name rows and columns x1, x2, ... instead of by their labels',
)
write_parser.set_defaults(format='json')


def main(args=None):
    parser = get_parser()
    if args is None:
        args = sys.argv[1:]
    args = list(args)
    if not args:
        args.append('-h')
    options = parser.parse_args(args)
    return options.func(options)


def main_console_script():
    "This is the entry point for the main amlgen script"
    return main()


if __name__ == '__main__':
    sys.exit(main_console_script())
