"""
Logistic-regression indirect evidence for BERE.

For each transcription factor, the motif row of the RegulatoryNetwork is
turned into a binary response over genes (1 = the TF has a motif at the
gene). The genes' expression profiles are the observations, with one
covariate per condition. A logistic model learns which expression patterns
characterize the TF's motif targets, and the fitted probability for every
gene becomes the indirect evidence for that TF → gene edge. Genes without a
motif but with a target-like expression profile score high.

Back-ends:

    Regularization.NONE -- statsmodels GLM (Binomial family, IRLS).
        Predictions are always computed the same way: the intercept plus the
        linear combination of covariates and coefficients, passed through
        the logistic link. With a coefficient p-value cutoff, coefficients
        above the cutoff (or with undefined p-values) are zeroed first.

    Regularization.L2 -- scikit-learn LogisticRegression with an L2 penalty
        on standardized covariates (intercept unpenalized). C = 1 / penalty.
        The lbfgs solver is deterministic.

Degenerate rows:
    A TF whose motif row is constant (binds every gene or none) has no
    contrast to learn. The fit is skipped and the constant prediction (the
    row mean, 0 or 1) is returned.

Failures:
    A fit that does not converge within max_iter, or whose response is
    perfectly separated by the covariates, raises ConvergenceError.
    indirect_evidence() isolates these per TF: the TF falls back to the
    constant prediction (its motif frequency) and a warning is logged.
    Use strict=True to propagate the error instead.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional

import numpy as np
import statsmodels.api as sm
from sklearn.exceptions import ConvergenceWarning as SklearnConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.preprocessing import StandardScaler
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as StatsmodelsConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from netstate.core.alignment import AlignedData
from netstate.core.errors import ConvergenceError
from netstate.inference.options import InferenceOptions, Regularization
from netstate.utils.progress import ProgressReporter, resolve_progress
from netstate.utils.statistics import logistic

__all__ = [
    'fit_unregularized',
    'fit_ridge',
    'indirect_evidence',
]

logger = logging.getLogger(__name__)


def fit_unregularized(
    response: np.ndarray,
    covariates: np.ndarray,
    coefficient_cutoff: Optional[float] = None,
    max_iter: int = 100,
    entity: Optional[str] = None,
) -> np.ndarray:
    """
    Binomial GLM fit; returns predicted probabilities for every observation.

    Args:
        response: Binary response (n_genes,)
        covariates: Design without intercept (n_genes × n_conditions)
        coefficient_cutoff: Optional p-value cutoff for keeping coefficients
        max_iter: IRLS iteration budget
        entity: Label used in error messages (the TF)

    Returns:
        Probabilities (n_genes,)

    Raises:
        ConvergenceError: If IRLS does not converge, separation is perfect,
            or the coefficients are not finite
    """
    design = sm.add_constant(covariates, has_constant="add")
    model = sm.GLM(response, design, family=sm.families.Binomial())

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", StatsmodelsConvergenceWarning)
        warnings.simplefilter("ignore", RuntimeWarning)
        # statsmodels >= 0.14 only warns on separation
        warnings.simplefilter("error", PerfectSeparationWarning)
        try:
            result = model.fit(maxiter=max_iter)
        except (PerfectSeparationError, PerfectSeparationWarning) as e:
            raise ConvergenceError(f"perfect separation in logistic fit ({e})", entity) from e
        except np.linalg.LinAlgError as e:
            raise ConvergenceError(f"singular logistic fit ({e})", entity) from e

    if not getattr(result, "converged", True):
        raise ConvergenceError(
            f"logistic regression did not converge within {max_iter} iterations", entity
        )

    coefficients = np.asarray(result.params, dtype=np.float64).copy()
    if not np.all(np.isfinite(coefficients)):
        raise ConvergenceError("logistic regression produced non-finite coefficients", entity)

    if coefficient_cutoff is not None:
        pvalues = np.asarray(result.pvalues, dtype=np.float64)
        insignificant = ~(pvalues <= coefficient_cutoff)
        coefficients[insignificant] = 0.0

    return logistic(design @ coefficients)


def fit_ridge(
    response: np.ndarray,
    covariates: np.ndarray,
    penalty: float = 10.0,
    max_iter: int = 100,
    entity: Optional[str] = None,
) -> np.ndarray:
    """
    L2-penalized logistic fit on standardized covariates.

    Args:
        response: Binary response (n_genes,)
        covariates: Design without intercept (n_genes × n_conditions)
        penalty: L2 penalty strength (lambda); C = 1 / penalty
        max_iter: lbfgs iteration budget
        entity: Label used in error messages (the TF)

    Returns:
        Probabilities (n_genes,)

    Raises:
        ConvergenceError: If lbfgs reports non-convergence
    """
    scaled = StandardScaler().fit_transform(covariates)
    model = LogisticRegression(C=1.0 / penalty, solver="lbfgs", max_iter=max_iter)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", SklearnConvergenceWarning)
        model.fit(scaled, response.astype(int))

    converged = True
    for w in caught:
        if issubclass(w.category, SklearnConvergenceWarning):
            converged = False
        else:
            warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)

    if not converged:
        raise ConvergenceError(
            f"penalized logistic regression did not converge within {max_iter} iterations",
            entity,
        )

    return model.predict_proba(scaled)[:, 1]


def indirect_evidence(
    aligned: AlignedData,
    options: InferenceOptions,
    progress: Optional[ProgressReporter] = None,
) -> np.ndarray:
    """
    Indirect evidence matrix (TF × gene) from per-TF logistic fits.

    Args:
        aligned: Aligned motif and expression data
        options: Back-end selection and fit parameters
        progress: Optional progress reporter (one step per TF)

    Returns:
        Probabilities in [0, 1], shape (n_tfs, n_genes)

    Raises:
        ConvergenceError: Only when options.strict is set
    """
    progress = resolve_progress(progress)
    presence = aligned.presence.to_numpy()
    # Missing expression values carry no information for the fit
    covariates = np.nan_to_num(aligned.expression.data, nan=0.0)

    result = np.empty_like(presence)
    n_degenerate = 0
    failed: list[str] = []

    progress.start(len(aligned.tf_ids), "Fitting TF models")
    for i, tf in enumerate(aligned.tf_ids):
        response = presence[i]
        frequency = float(response.mean())

        if frequency in (0.0, 1.0):
            result[i] = frequency
            n_degenerate += 1
            progress.advance()
            continue

        try:
            if options.regularization is Regularization.L2:
                result[i] = fit_ridge(
                    response, covariates,
                    penalty=options.penalty,
                    max_iter=options.max_iter,
                    entity=tf,
                )
            else:
                result[i] = fit_unregularized(
                    response, covariates,
                    coefficient_cutoff=options.coefficient_cutoff,
                    max_iter=options.max_iter,
                    entity=tf,
                )
        except ConvergenceError as e:
            if options.strict:
                progress.close()
                raise
            logger.warning(f"{e}; using motif frequency {frequency:.3f} as prediction")
            result[i] = frequency
            failed.append(str(tf))
        progress.advance()
    progress.close()

    if n_degenerate:
        logger.info(f"{n_degenerate} TF(s) with constant motif rows used constant predictions")
    if failed:
        logger.warning(
            f"{len(failed)}/{len(aligned.tf_ids)} TF fits failed to converge and used "
            f"constant predictions"
        )

    return result
