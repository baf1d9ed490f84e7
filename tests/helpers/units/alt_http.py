"""Alternative unit selected through a validator override."""
from layerconf.schema import any_value


def validator():
    return any_value()
