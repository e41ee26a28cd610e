import functools

import click
import numpy as np

from yancpy.config import load_numerics
from yancpy.crypto import generate_rsa_keys
from yancpy.errors import YancError
from yancpy.functions import Polynomial
from yancpy.linalg import eigenvalues as matrix_eigenvalues
from yancpy.log import configure_logging
from yancpy.matrix import Matrix
from yancpy.solvers import integrate as integrate_function
from yancpy.solvers import newton_raphson
from yancpy.tasks import Scheduler, parallel_integrate


def _coefficients(values: tuple[str, ...]) -> Polynomial:
    try:
        return Polynomial([float(v) for v in values])
    except ValueError as err:
        raise click.BadParameter(f"coefficients must be numbers: {err}") from err


def _reports_errors(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except YancError as err:
            raise click.ClickException(str(err)) from err

    return wrapper


def _format_complex(z: complex) -> str:
    if z.imag == 0.0:
        return f"{z.real:.12g}"
    return f"{z.real:.12g} {'+' if z.imag > 0 else '-'} {abs(z.imag):.12g}i"


config_option = click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON or YAML file with a numerics section overriding the defaults.",
)
log_level_option = click.option(
    "--log-level",
    type=str,
    default=None,
    help="Logging level (DEBUG, NUMERICS, INFO, ...). Defaults to $YANC_LOG_LEVEL.",
)


@click.group()
def cli() -> None:
    pass


@cli.command()
@config_option
@log_level_option
@click.option("--lower", "-a", type=float, required=True, help="Lower bound.")
@click.option("--upper", "-b", type=float, required=True, help="Upper bound.")
@click.option(
    "--partitions",
    "-n",
    type=int,
    default=1,
    show_default=True,
    help="Number of concurrent partitions.",
)
@click.argument("coefficients", nargs=-1, required=True)
@_reports_errors
def integrate(config, log_level, lower, upper, partitions, coefficients) -> None:
    """Integrate the polynomial with COEFFICIENTS (lowest degree first)."""
    configure_logging(log_level)
    numerics = load_numerics(config)
    poly = _coefficients(coefficients)
    if partitions <= 1:
        value = integrate_function(poly, lower, upper, numerics=numerics)
    else:
        with Scheduler(numerics=numerics) as scheduler:
            value = parallel_integrate(scheduler, poly, lower, upper, partitions).result()
    click.echo(f"{value:.15g}")


@cli.command()
@config_option
@log_level_option
@click.option(
    "--newton",
    "x0",
    type=float,
    default=None,
    help="Refine a single root with Newton-Raphson from this starting point.",
)
@click.argument("coefficients", nargs=-1, required=True)
@_reports_errors
def roots(config, log_level, x0, coefficients) -> None:
    """Roots of the polynomial with COEFFICIENTS (lowest degree first)."""
    configure_logging(log_level)
    numerics = load_numerics(config)
    poly = _coefficients(coefficients)
    if x0 is not None:
        click.echo(f"{newton_raphson(poly, x0, numerics=numerics):.15g}")
        return
    for root in poly.roots(numerics):
        click.echo(_format_complex(complex(root)))


@cli.command()
@config_option
@log_level_option
@click.argument("matrix_file", type=click.Path(exists=True, dir_okay=False))
@_reports_errors
def eigenvalues(config, log_level, matrix_file) -> None:
    """Eigenvalues of the square matrix stored as whitespace separated rows in MATRIX_FILE."""
    configure_logging(log_level)
    numerics = load_numerics(config)
    matrix = Matrix.from_array(np.atleast_2d(np.loadtxt(matrix_file, dtype=np.float64)))
    for value in matrix_eigenvalues(matrix, numerics):
        click.echo(_format_complex(complex(value)))


@cli.command()
@config_option
@log_level_option
@click.option("--bits", type=int, default=2048, show_default=True, help="Modulus length.")
@click.option("--seed", type=int, default=None, help="Seed for reproducible keys.")
@_reports_errors
def keygen(config, log_level, bits, seed) -> None:
    """Generate an RSA key pair and print it."""
    configure_logging(log_level)
    numerics = load_numerics(config)
    keys = generate_rsa_keys(bits, seed=seed, numerics=numerics)
    click.echo(f"n = {keys.public.n}")
    click.echo(f"e = {keys.public.e}")
    click.echo(f"d = {keys.private.d}")
