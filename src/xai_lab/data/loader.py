"""
Claims dataset loading, validation and sampling.

The dataset is a simulated claims-frequency table published on OpenML.
It is fetched once and cached under the configured data directory; all
random partitions below use explicit seeds so reruns see the same rows.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.datasets import fetch_openml
from sklearn.model_selection import train_test_split

from ..config import get_settings
from .schemas import CLAIM_COLUMNS, CLAIM_FEATURES, TARGET, ClaimsSplit, ExplanationRequest

logger = logging.getLogger(__name__)


def validate_claims(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check that a frame follows the claims schema.

    Args:
        df: Candidate claims data

    Returns:
        The claims columns in canonical order, cast to float

    Raises:
        ValueError: If columns are missing, non-numeric or ``town`` is not binary
    """
    missing = [col for col in CLAIM_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Claims data is missing columns: {missing}")

    out = df[CLAIM_COLUMNS].copy()
    for col in CLAIM_COLUMNS:
        if not pd.api.types.is_numeric_dtype(out[col]):
            try:
                out[col] = pd.to_numeric(out[col])
            except (TypeError, ValueError) as e:
                raise ValueError(f"Column {col!r} is not numeric") from e
    out = out.astype(float)

    if not out["town"].isin([0.0, 1.0]).all():
        raise ValueError("Column 'town' must be a 0/1 indicator")
    if (out[TARGET] < 0).any():
        raise ValueError("Claim counts must be non-negative")

    return out.reset_index(drop=True)


def load_claims(
    data_id: int | None = None,
    data_home: Path | None = None,
) -> pd.DataFrame:
    """
    Fetch the claims-frequency dataset from OpenML.

    Network failures are raised as-is; there is no retry.

    Args:
        data_id: OpenML dataset id (default from settings)
        data_home: Download cache directory (default from settings)

    Returns:
        Validated claims frame with the feature columns and ``claim_nb``
    """
    settings = get_settings()
    data_id = data_id or settings.openml_data_id
    data_home = data_home or settings.data_dir

    logger.info(
        f"Fetching OpenML dataset {data_id}",
        extra={"action": "load_claims", "data": {"data_id": data_id}},
    )
    bunch = fetch_openml(
        data_id=data_id,
        as_frame=True,
        data_home=str(data_home),
        parser="auto",
    )
    df = validate_claims(bunch.frame)
    logger.info(f"Loaded {len(df)} claims rows", extra={"rows": len(df)})
    return df


def split_claims(
    df: pd.DataFrame,
    test_size: float | None = None,
    seed: int | None = None,
) -> ClaimsSplit:
    """
    Partition the data once into training and held-out rows.

    Args:
        df: Validated claims data
        test_size: Held-out share (default 0.1)
        seed: Random seed (default 8300)

    Returns:
        ClaimsSplit with train and test frames
    """
    settings = get_settings()
    test_size = settings.test_size if test_size is None else test_size
    seed = settings.split_seed if seed is None else seed

    train, test = train_test_split(df, test_size=test_size, random_state=seed)
    return ClaimsSplit(train=train, test=test, seed=seed)


def sample_explanation_request(
    X: pd.DataFrame,
    n_explain: int | None = None,
    n_background: int | None = None,
    seed: int | None = None,
) -> ExplanationRequest:
    """
    Draw the rows to explain and a background set for Kernel SHAP.

    Both sets come from one generator so a fixed seed reproduces them.
    The background rows are always disjoint from the explained rows. When
    the data cannot hold both sets, the explained rows are clipped so that
    at least one background row remains, and the background takes what is
    left.

    Args:
        X: Feature matrix to sample from
        n_explain: Number of rows to explain (default 1000)
        n_background: Number of background rows (default 200)
        seed: Random seed (default 3948)

    Returns:
        ExplanationRequest
    """
    settings = get_settings()
    n_explain = settings.n_explain if n_explain is None else n_explain
    n_background = settings.n_background if n_background is None else n_background
    seed = settings.explain_seed if seed is None else seed

    if n_explain < 1 or n_background < 1:
        raise ValueError("n_explain and n_background must be positive")
    if len(X) < 2:
        raise ValueError("Need at least two rows to sample explained and background rows")

    X = X[CLAIM_FEATURES]
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(X))

    n_explain = min(n_explain, len(X) - 1)
    explain_idx = order[:n_explain]
    background_idx = order[n_explain:][:n_background]

    return ExplanationRequest(
        X_explain=X.iloc[explain_idx].reset_index(drop=True),
        background=X.iloc[background_idx].reset_index(drop=True),
        seed=seed,
    )
