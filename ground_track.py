"""
Project an orbit track onto the surface of the earth.
"""


def project_to_ground(samples: list[float]) -> list[float]:
    """
    Zero the height of every (longitude, latitude, height) triple in a
    flat track, leaving longitude and latitude untouched.
    """
    ground = []
    for i, value in enumerate(samples):
        if (i + 1) % 3 == 0:
            ground.append(0)
        else:
            ground.append(value)
    return ground
