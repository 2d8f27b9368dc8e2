import math


def angle_diff(a, b):
    """Compute smallest angle difference b - a, wrapped to [-pi, pi)"""
    diff = (b - a + math.pi) % (2 * math.pi) - math.pi
    return diff


def clip_angle(theta):
    """Clip angle to [-pi, pi]"""
    return math.atan2(math.sin(theta), math.cos(theta))


def bearing(from_x, from_z, to_x, to_z):
    """Heading that points from one ground point to another (0 = +z axis)."""
    return math.atan2(to_x - from_x, to_z - from_z)


def step_along(x, z, heading, distance):
    """Point reached by moving `distance` along `heading`."""
    return (x + math.sin(heading) * distance,
            z + math.cos(heading) * distance)
