from .loader import InputLoader, InputVariant, input_path, read_input

__all__ = ["InputLoader", "InputVariant", "input_path", "read_input"]
