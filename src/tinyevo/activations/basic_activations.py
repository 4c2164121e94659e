import numpy as np

def identity_activation(z):
    return z

def clamped_activation(z):
    return np.clip(z, -1.0, 1.0)

def relu_activation(z):
    return np.maximum(0.0, z)

def leaky_relu_activation(z):
    return np.maximum(0.01 * z, z)

def sigmoid_activation(z):
    z = np.clip(z, -500, 500)   # to prevent overflow when calculating exp
    return 1.0 / (1.0 + np.exp(-z))

def tanh_activation(z):
    return np.tanh(z)

activations = {
    "identity"  : identity_activation,
    "clamped"   : clamped_activation,
    "relu"      : relu_activation,
    "leaky_relu": leaky_relu_activation,
    "sigmoid"   : sigmoid_activation,
    "tanh"      : tanh_activation,
    }

def get_activation(name: str):
    """
    Resolve an activation function from its name.

    Raises:
        ValueError: If no activation function is registered under 'name'
    """
    try:
        return activations[name]
    except KeyError:
        raise ValueError(f"Unknown activation function '{name}'. "
                         f"Available: {', '.join(sorted(activations))}") from None

def activation_name(function) -> str | None:
    """
    Return the name under which 'function' is registered, or None if it is not in the catalog.
    """
    for name, candidate in activations.items():
        if candidate is function:
            return name
    return None
