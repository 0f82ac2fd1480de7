# bivariate_mlp/torch_utils.py
from __future__ import annotations

import random
from typing import Optional, Tuple

import numpy as np
import torch


def seed_everything(seed: int) -> None:
    """Seed python, numpy and torch RNGs (CPU runs are then reproducible)."""
    seed = int(seed)
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)


def resolve_device(requested: str = "auto", *, allow_fallback: bool = True) -> Tuple[str, Optional[str]]:
    """Resolve a torch device string.

    Returns (device, warning_message).

    - requested="auto": "cuda" when available, else "cpu" (env defaults are applied by the caller)
    - requested="cuda"/"cuda:0": verifies availability; may fall back to cpu
    """
    req = str(requested or "auto").strip().lower()
    if req == "auto":
        return ("cuda" if torch.cuda.is_available() else "cpu"), None

    if req.startswith("gpu"):
        req = "cuda"
    if req.startswith("cuda") and not torch.cuda.is_available():
        if allow_fallback:
            return "cpu", f"GPU device requested ({requested!r}) but CUDA is not available. Falling back to CPU."
        raise ValueError(f"Requested device {requested!r} but CUDA is not available.")

    if req != "cpu" and not req.startswith("cuda"):
        raise ValueError(f"Unknown device {requested!r}; expected 'auto', 'cpu', 'cuda' or 'cuda:<index>'.")
    return req, None
