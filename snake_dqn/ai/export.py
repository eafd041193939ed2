"""
Model Export
============

Serializes a trained network as a layers-model JSON document that a standard
dense-network runtime can load without reshaping:

    {
      "modelTopology": {"class_name": "Sequential", "config": {"layers": [...]}},
      "weightSpecs":   [{"name": "dense/kernel", "shape": [in, out], "dtype": "float32"}, ...],
      "weightData":    [byte, byte, ...],   # little-endian float32, kernel then bias per layer
      "meta":          {"epsilon": 0.05}
    }

Kernels are written input-major ([in, out]), which is the network's own
storage order.
"""

import json
import os
import tempfile
from typing import Any, Dict, List, Tuple

import numpy as np

from .network import DenseLayer, Network
from ..utils.logger import log_model_event

FLOAT_DTYPE = np.dtype('<f4')


class ModelExportError(Exception):
    """Raised when a model file cannot be written or read back."""


def _layer_name(index: int) -> str:
    return 'dense' if index == 0 else f'dense_{index}'


def build_topology(network: Network) -> Dict[str, Any]:
    """Sequential topology naming each dense layer, its units and activation."""
    layers = []
    for i, layer in enumerate(network.layers):
        layer_config: Dict[str, Any] = {
            'units': layer.out_size,
            'activation': layer.activation,
            'use_bias': True,
            'name': _layer_name(i),
            'dtype': 'float32',
        }
        if i == 0:
            layer_config['batch_input_shape'] = [None, layer.in_size]
        layers.append({'class_name': 'Dense', 'config': layer_config})

    return {
        'class_name': 'Sequential',
        'config': {'name': 'sequential', 'layers': layers},
    }


def build_weights(network: Network) -> Tuple[List[Dict[str, Any]], bytes]:
    """
    Flatten all weights into one little-endian float32 buffer.

    Returns:
        Tuple of (weight specs, byte buffer)
    """
    specs: List[Dict[str, Any]] = []
    chunks: List[bytes] = []
    for i, layer in enumerate(network.layers):
        name = _layer_name(i)
        chunks.append(np.ascontiguousarray(layer.weights, dtype=FLOAT_DTYPE).tobytes())
        specs.append({'name': f'{name}/kernel', 'shape': [layer.in_size, layer.out_size], 'dtype': 'float32'})
        chunks.append(np.ascontiguousarray(layer.biases, dtype=FLOAT_DTYPE).tobytes())
        specs.append({'name': f'{name}/bias', 'shape': [layer.out_size], 'dtype': 'float32'})
    return specs, b''.join(chunks)


def build_model_document(network: Network, epsilon: float) -> Dict[str, Any]:
    """Assemble the full export document for a network snapshot."""
    specs, data = build_weights(network)
    return {
        'modelTopology': build_topology(network),
        'weightSpecs': specs,
        'weightData': list(data),
        'meta': {'epsilon': float(epsilon)},
    }


def export_model(network: Network, epsilon: float, filepath: str, **context: Any) -> str:
    """
    Write the network to ``filepath`` as a layers-model JSON document.

    The document is written to a temporary file next to the destination and
    moved into place, so a failed export never leaves a partial file behind.
    Only reads the network.

    Args:
        network: Network to export
        epsilon: Current exploration rate, stored in the metadata block
        filepath: Destination path
        **context: Extra fields for the log line (episode, best_avg, ...)

    Returns:
        The path written

    Raises:
        ModelExportError: If the file cannot be written
    """
    document = build_model_document(network, epsilon)

    dir_path = os.path.dirname(os.path.abspath(filepath))
    tmp_path = None
    try:
        os.makedirs(dir_path, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix='.export-', suffix='.json', dir=dir_path)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(document, f, separators=(',', ':'))
        os.replace(tmp_path, filepath)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise ModelExportError(f"Failed to export model to {filepath}: {e}") from e

    log_model_event('export', filepath, epsilon=f"{epsilon:.4f}", **context)
    return filepath


def load_model(filepath: str) -> Tuple[Network, float]:
    """
    Rebuild a network from an exported document.

    Returns:
        Tuple of (network, epsilon). The network has fresh optimizer state.

    Raises:
        ModelExportError: If the file is missing, unreadable or inconsistent
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except (OSError, ValueError) as e:
        raise ModelExportError(f"Failed to read model {filepath}: {e}") from e

    try:
        layer_configs = [entry['config'] for entry in document['modelTopology']['config']['layers']]
        specs = document['weightSpecs']
        data = bytes(document['weightData'])
        epsilon = float(document.get('meta', {}).get('epsilon', 0.0))
    except (KeyError, TypeError, ValueError) as e:
        raise ModelExportError(f"Malformed model document {filepath}: {e}") from e

    if not layer_configs or len(specs) != 2 * len(layer_configs):
        raise ModelExportError(
            f"{filepath}: {len(specs)} weight specs for {len(layer_configs)} layers"
        )

    arrays = []
    offset = 0
    for spec in specs:
        count = int(np.prod(spec['shape']))
        nbytes = count * FLOAT_DTYPE.itemsize
        if offset + nbytes > len(data):
            raise ModelExportError(f"{filepath}: weight data too short for {spec['name']}")
        arrays.append(np.frombuffer(data, dtype=FLOAT_DTYPE, count=count, offset=offset).reshape(spec['shape']))
        offset += nbytes
    if offset != len(data):
        raise ModelExportError(f"{filepath}: {len(data) - offset} unused bytes of weight data")

    layers = []
    for i, layer_config in enumerate(layer_configs):
        weights, biases = arrays[2 * i], arrays[2 * i + 1]
        if weights.ndim != 2 or weights.shape[1] != layer_config['units'] or biases.shape != (layer_config['units'],):
            raise ModelExportError(f"{filepath}: shape mismatch in layer {layer_config.get('name', i)}")
        layers.append(DenseLayer.from_arrays(weights, biases, relu=(layer_config['activation'] == 'relu')))

    try:
        network = Network.from_layers(layers)
    except ValueError as e:
        raise ModelExportError(f"{filepath}: {e}") from e

    log_model_event('load', filepath, layers=network.layer_sizes)
    return network, epsilon
