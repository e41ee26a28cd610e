def test_public_imports() -> None:
    # A lightweight contract test: keep the most common imports stable.
    import yancpy

    assert hasattr(yancpy, "__version__")

    from yancpy import (  # noqa: F401
        Complex,
        EventBus,
        Matrix,
        Polynomial,
        Scheduler,
        fft,
        integrate,
        inverse,
        newton_raphson,
        parallel_integrate,
    )


def test_errors_share_a_base() -> None:
    import yancpy

    for name in (
        "DomainError",
        "DimensionError",
        "SingularMatrixError",
        "ConvergenceError",
        "DivergenceError",
        "UnsupportedOperationError",
        "KeyGenerationError",
        "HandlerError",
        "TaskCancelledError",
        "ConfigError",
    ):
        assert issubclass(getattr(yancpy, name), yancpy.YancError)

    assert issubclass(yancpy.DomainError, ValueError)
    assert issubclass(yancpy.DimensionError, ValueError)
