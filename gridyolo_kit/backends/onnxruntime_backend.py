from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_GRAPH_OPTIMIZATION = {
    "disable": "ORT_DISABLE_ALL",
    "basic": "ORT_ENABLE_BASIC",
    "extended": "ORT_ENABLE_EXTENDED",
    "all": "ORT_ENABLE_ALL",
}


def select_providers(use_cuda: bool) -> List[str]:
    """
    Execution providers for a CPU/CUDA choice, CPU always kept as fallback.
    """

    if use_cuda:
        return ["CUDAExecutionProvider", "CPUExecutionProvider"]
    return ["CPUExecutionProvider"]


def _concrete_shape(shape: Sequence[Any]) -> Tuple[int, ...]:
    # Dynamic batch dims show up as -1, None or a symbolic name; run one image.
    return tuple(d if isinstance(d, int) and d > 0 else 1 for d in shape)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    - graph_optimization: one of disable / basic / extended / all
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    intra_op_num_threads: int = 1
    graph_optimization: str = "extended"


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend.

    Expects an NCHW float32 blob, (1, 3, 416, 416) for Tiny YOLOv2.
    Returns the primary output as a NumPy array.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        if cfg.graph_optimization not in _GRAPH_OPTIMIZATION:
            raise ValueError(
                f"graph_optimization must be one of {sorted(_GRAPH_OPTIMIZATION)}, got {cfg.graph_optimization!r}"
            )

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        sess_opts.intra_op_num_threads = cfg.intra_op_num_threads
        sess_opts.graph_optimization_level = getattr(
            ort.GraphOptimizationLevel, _GRAPH_OPTIMIZATION[cfg.graph_optimization]
        )
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        inp = self.session.get_inputs()[0]
        out = self.session.get_outputs()[0]
        self.input_name = cfg.input_name or inp.name
        # If output_name not provided, pick first output.
        self.output_name = cfg.output_name or out.name
        self.input_shape = _concrete_shape(inp.shape)
        self.output_shape = _concrete_shape(out.shape)
        logger.debug(
            "Loaded %s: input %s %s, output %s %s, providers %s",
            self.model_path,
            self.input_name,
            self.input_shape,
            self.output_name,
            self.output_shape,
            self.providers_in_use,
        )

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(self._ort.get_available_providers())

    def infer(self, blob: np.ndarray, extra_inputs: Optional[Dict[str, Any]] = None) -> np.ndarray:
        inputs: Dict[str, Any] = {self.input_name: np.ascontiguousarray(blob, dtype=np.float32)}
        if extra_inputs:
            inputs.update(extra_inputs)
        outputs = self.session.run([self.output_name], inputs)
        return outputs[0]
