#!/usr/bin/env python3

"""
Nomogram Scale Generator
Three-scale nomograms read with an index line, for the equation families:
    fC⋅C = fA⋅A + fB⋅B + k          (addition)
    fC⋅C^eC = k⋅fA⋅A^eA⋅fB⋅B^eB     (multiplication)
    X² + B⋅X + C = 0                (second degree, X on a curved scale)

Table of Contents
   1. Setup
   2. Fundamental Functions
   3. Scale Generating Functions
   4. Straight Scales
   5. Curved Scales
   6. Nomograms
   7. Rendering
   8. Commands
"""

# ----------------------1. Setup----------------------------

import copy
import logging
import math
import os
import re
import sys
import time
from xml.etree import ElementTree
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from functools import cache

import toml
from PIL import Image, ImageFont, ImageDraw
import drawsvg as svg
import ziamath as zm

log = logging.getLogger(__name__)


def keys_of(obj: object):
    return [k for k, v in obj.__dict__.items() if not k.startswith('__')]


def check_keys(cls, definition: dict, what: str):
    unknown = set(definition) - {f.name for f in fields(cls)}
    if unknown:
        raise ValueError(f'{what}: unknown keys {", ".join(sorted(unknown))}')


DEBUG = False

FF = 255
WH = tuple[int, int]
XY = tuple[float, float]
Line = tuple[XY, XY]
Bezier = tuple[XY, XY, XY, XY]


class Color(Enum):
    WHITE, BLACK = (FF, FF, FF), (0, 0, 0)
    RED, GREEN, BLUE = (FF, 0, 0), (0, FF, 0), (0, 0, FF)
    GREY = (127, 127, 127)
    LIGHT_GREY = (211, 211, 211)

    @staticmethod
    @cache
    def to_pil(col_spec):
        return col_spec.value if isinstance(col_spec, Color) else col_spec

    @classmethod
    def to_str(cls, col):
        for name, val in cls._member_map_.items():
            if val == col:
                return name.lower()
        if isinstance(col, tuple):
            return f'rgb({col[0]},{col[1]},{col[2]})'
        elif isinstance(col, cls):
            return cls.to_str(col.value)
        return col

    @classmethod
    def from_str(cls, color: str):
        return getattr(cls, color.upper(), color)


class FontSize(Enum):
    TITLE = 28
    SC_LBL = 24
    N_SM = 14


class OutFormat(Enum):
    PNG, SVG = 'png', 'svg'


class HAlign(Enum):
    L, C, R = 'left', 'center', 'right'


class Space(Enum):
    """Coordinate systems a scale's geometry is expressed in."""
    TOP_VIEW = 'top_view'
    """the whole nomogram"""
    ZOOMED_VIEW = 'zoomed_view'
    """the detail view of a single scale, kept centred on its value"""
    BEZIER = 'bezier'
    """companion of ZOOMED_VIEW for the straight scales a curved scale is fitted against"""


class OperationType(Enum):
    ADDITION = 'addition'
    MULTIPLICATION = 'multiplication'
    SECOND_DEGREE = 'second_degree'


class VariableEquation(Enum):
    """Which variable of the governing equation a scale carries."""
    INPUT1 = 'input1'
    INPUT2 = 'input2'
    OUTPUT = 'output'


class BezierSlope(Enum):
    """How the chord slope between the curve ends is evaluated when fitting a Bézier."""
    LEGACY = 'legacy'
    """y(x_end) - y(x_start) / x_end - x_start, as the first curved scales were fitted"""
    CHORD = 'chord'
    """(y(x_end) - y(x_start)) / (x_end - x_start)"""


class Font:
    """Fonts are Pillow's scalable default face, so measured label extents match the drawn ones."""

    @classmethod
    @cache
    def get_font(cls, fs: int):
        return ImageFont.load_default(fs)

    @classmethod
    def font_for(cls, font_size):
        fs: int = font_size.value if isinstance(font_size, FontSize) else font_size
        return cls.get_font(fs)


@dataclass(frozen=True)
class Style:
    fg: Color = Color.BLACK
    """foreground color black"""
    bg: Color = Color.WHITE
    """background color white"""
    value_color: Color = Color.RED
    """color of the value dots, value labels and index line"""
    border_color: Color = Color.BLACK
    font_family: str = 'sans-serif'
    """font family written into SVG text elements"""

    @classmethod
    def from_dict(cls, style_def: dict):
        check_keys(cls, style_def, 'style')
        for key in ('fg', 'bg', 'value_color', 'border_color'):
            if key in style_def:
                style_def[key] = Color.from_str(style_def[key])
        return cls(**style_def)

    @staticmethod
    def font_for(font_size):
        return Font.font_for(font_size)

    @staticmethod
    def sym_dims(symbol: str, font: ImageFont) -> WH:
        """Gets the size dimensions (width, height) of the input text"""
        (x1, y1, x2, y2) = font.getbbox(symbol)
        return x2 - x1, y2 - y1

    @classmethod
    def label_dims(cls, symbol: str) -> WH:
        return cls.sym_dims(symbol, cls.font_for(FontSize.N_SM))


@dataclass(frozen=True)
class Geometry:
    """Layout constants of the top view and of the zoomed detail view, in pixels."""
    width: int = 900
    height: int = 900
    zoomed_width: int = 900
    zoomed_height: int = 300
    padding_div: int = 9
    """scales sit 1/padding_div of the view size in from its edges"""
    GL: int = 10
    """graduation tick half length"""
    label_gap: int = 20
    """gap between a straight scale's tick and its label centre"""
    hitbox_r: int = 40
    """how close a finger has to be to a value point to grab it"""
    dot_r: int = 7
    name_offset: int = 30
    value_offset: int = 4
    STT: int = 2
    """stroke width of scales and first order ticks"""
    title_y: int = 10

    @property
    def screen_wh(self) -> WH:
        return self.width, self.height

    @property
    def zoomed_wh(self) -> WH:
        return self.zoomed_width, self.zoomed_height

    def padding(self, screen_size: WH) -> XY:
        return screen_size[0] / self.padding_div, screen_size[1] / self.padding_div

    @classmethod
    def from_dict(cls, geometry_def: dict):
        check_keys(cls, geometry_def, 'geometry')
        return cls(**geometry_def)


# ----------------------2. Fundamental Functions----------------------------


def round_places(x: float, places: int = 10) -> float:
    """Rounds half away from zero, so that graduation values built by stepping stay exact."""
    scale = 10 ** places
    return math.copysign(math.floor(abs(x) * scale + 0.5), x) / scale


def apply_zoom(point: XY, scale: float, center: XY) -> XY:
    return (point[0] - center[0]) * scale + center[0], (point[1] - center[1]) * scale + center[1]


def apply_pan(point: XY, translation: XY) -> XY:
    return point[0] + translation[0], point[1] + translation[1]


def apply_sarrus(matrix: list[list[float]]) -> tuple[float, float, float]:
    """Expands the determinant of a 3x3 matrix along its last row of ones.

    For the matrix of two points of a line the determinant is zero exactly on the line,
    which gives coef_x * x + coef_y * y + indep = 0.
    """
    coef_x = matrix[1][0] * matrix[2][1] - matrix[2][0] * matrix[1][1]
    coef_y = matrix[0][1] * matrix[2][0] - matrix[2][1] * matrix[0][0]
    indep = matrix[0][0] * matrix[1][1] - matrix[1][0] * matrix[0][1]
    return coef_x, coef_y, indep


def line_coefs(line: Line) -> tuple[float, float, float]:
    (x0, y0), (x1, y1) = line
    return apply_sarrus([[x0, x1, -1], [y0, y1, -1], [1, 1, 1]])


def find_intersection(line1: Line, line2: Line) -> XY | None:
    """Intersection of two infinite lines, None when they are parallel."""
    a1, b1, c1 = line_coefs(line1)
    a2, b2, c2 = line_coefs(line2)
    det = a1 * b2 - a2 * b1
    if det == 0:
        return None
    return (b1 * c2 - b2 * c1) / det, (a2 * c1 - a1 * c2) / det


def distance(p1: XY, p2: XY) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def is_in_hitbox(target: XY, point: XY, tolerance: float = 40) -> bool:
    return distance(target, point) < tolerance


def project_onto_line(point: XY, line: Line) -> XY:
    """Orthogonal projection of point onto the line through both ends of line."""
    (sx, sy), (ex, ey) = line
    dx, dy = ex - sx, ey - sy
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return sx, sy
    k = ((point[0] - sx) * dx + (point[1] - sy) * dy) / length_sq
    return sx + k * dx, sy + k * dy


def bezier_coeffs(p0: float, p1: float, p2: float, p3: float) -> list[float]:
    """Polynomial coefficients (t³, t², t, 1) of one coordinate of a cubic Bézier."""
    return [-p0 + 3 * p1 - 3 * p2 + p3,
            3 * p0 - 6 * p1 + 3 * p2,
            -3 * p0 + 3 * p1,
            p0]


def bezier_at(bezier: Bezier, t: float) -> XY:
    bx = bezier_coeffs(*(p[0] for p in bezier))
    by = bezier_coeffs(*(p[1] for p in bezier))
    return (((bx[0] * t + bx[1]) * t + bx[2]) * t + bx[3],
            ((by[0] * t + by[1]) * t + by[2]) * t + by[3])


def sample_bezier(bezier: Bezier, n: int = 64) -> list[XY]:
    return [bezier_at(bezier, i / n) for i in range(n + 1)]


def cube_root(x: float) -> float:
    return math.copysign(abs(x) ** (1 / 3), x)


def quadratic_roots(a: float, b: float, c: float) -> list[float]:
    if a == 0:
        return [] if b == 0 else [-c / b]
    disc = b * b - 4 * a * c
    if disc < 0:
        return []
    sq = math.sqrt(disc)
    return [(-b + sq) / (2 * a), (-b - sq) / (2 * a)]


def cubic_roots(a: float, b: float, c: float, d: float) -> list[float]:
    """Real roots in [0, 1] of a⋅t³ + b⋅t² + c⋅t + d, by Cardano's method."""
    if abs(a) <= 1e-12 * max(abs(b), abs(c), abs(d)):
        roots = quadratic_roots(b, c, d)
    else:
        A, B, C = b / a, c / a, d / a
        Q = (3 * B - A * A) / 9
        R = (9 * A * B - 27 * C - 2 * A * A * A) / 54
        D = Q * Q * Q + R * R
        if D >= 0:
            S = cube_root(R + math.sqrt(D))
            T = cube_root(R - math.sqrt(D))
            roots = [-A / 3 + (S + T)]
            if math.sqrt(3) * (S - T) / 2 == 0:
                roots.append(-A / 3 - (S + T) / 2)
        else:
            th = math.acos(max(-1.0, min(1.0, R / math.sqrt(-(Q * Q * Q)))))
            m = 2 * math.sqrt(-Q)
            roots = [m * math.cos((th + k * math.tau) / 3) - A / 3 for k in range(3)]
    return [t for t in roots if 0 <= t <= 1]


def intersect_line_bezier(line: Line, bezier: Bezier) -> XY | None:
    """First point where the segment line crosses the cubic Bézier, if any."""
    (lx0, ly0), (lx1, ly1) = line
    a = ly1 - ly0
    b = lx0 - lx1
    if a == 0 and b == 0:
        return None
    c = lx0 * (ly0 - ly1) + ly0 * (lx1 - lx0)
    bx = bezier_coeffs(*(p[0] for p in bezier))
    by = bezier_coeffs(*(p[1] for p in bezier))
    poly = [a * bx[i] + b * by[i] for i in range(4)]
    poly[3] += c
    for t in cubic_roots(*poly):
        x = ((bx[0] * t + bx[1]) * t + bx[2]) * t + bx[3]
        y = ((by[0] * t + by[1]) * t + by[2]) * t + by[3]
        s = (x - lx0) / (lx1 - lx0) if lx1 != lx0 else (y - ly0) / (ly1 - ly0)
        if 0 <= s <= 1 and math.isfinite(x) and math.isfinite(y):
            return x, y
    return None


def negative_root(b: float, c: float) -> float | None:
    """The non-positive solution of x² + b⋅x + c = 0, None when there is no real one."""
    disc = b * b - 4 * c
    if disc < 0:
        return None
    x1 = (-b + math.sqrt(disc)) / 2
    return x1 if x1 <= 0 else (-b - math.sqrt(disc)) / 2


class Sym:
    """Formatting of values and equation terms for labels."""
    SUPERSCRIPTS = str.maketrans('0123456789-+', '⁰¹²³⁴⁵⁶⁷⁸⁹⁻⁺')
    SUPERSCRIPT_RUN = re.compile('[⁰¹²³⁴⁵⁶⁷⁸⁹⁻⁺]+')
    LATEX_DIGITS = str.maketrans('⁰¹²³⁴⁵⁶⁷⁸⁹⁻⁺', '0123456789-+')

    @staticmethod
    def num_sym(value: float) -> str:
        if value == round(value):
            return str(int(round(value)))
        return f'{value:.10f}'.rstrip('0').rstrip('.')

    @classmethod
    def factor_sym(cls, factor: float) -> str:
        return '' if factor == 1 else f'{cls.num_sym(factor)}⋅'

    @classmethod
    def power_sym(cls, exponent: float) -> str:
        if exponent == 1:
            return ''
        if exponent == round(exponent):
            return cls.num_sym(exponent).translate(cls.SUPERSCRIPTS)
        return f'^{cls.num_sym(exponent)}'

    @classmethod
    def term(cls, name: str, factor: float = 1, exponent: float = 1) -> str:
        return f'{cls.factor_sym(factor)}{name}{cls.power_sym(exponent)}'

    @classmethod
    def to_latex(cls, text: str) -> str:
        result = cls.SUPERSCRIPT_RUN.sub(lambda m: '^{' + m.group(0).translate(cls.LATEX_DIGITS) + '}', text)
        result = re.sub(r'\^([0-9.\-]+)', r'^{\1}', result)
        return result.replace('⋅', r' \cdot ').replace('π', r'\pi ')


# ----------------------3. Scale Generating Functions----------------------------


@dataclass
class ScalePoint:
    """A position on a scale, kept in every coordinate space the scale is drawn in."""
    top_view: XY
    zoomed_view: XY
    bezier: XY = None
    """only carried by the straight scales a curved scale is fitted against"""

    @classmethod
    def of(cls, xy: XY, with_bezier=False):
        return cls(xy, xy, xy if with_bezier else None)

    def get(self, space: Space) -> XY:
        if space == Space.TOP_VIEW:
            return self.top_view
        if space == Space.ZOOMED_VIEW:
            return self.zoomed_view
        if self.bezier is None:
            raise ValueError('This point has no Bézier fitting coordinates')
        return self.bezier

    def set(self, space: Space, xy: XY):
        if space == Space.TOP_VIEW:
            self.top_view = xy
        elif space == Space.ZOOMED_VIEW:
            self.zoomed_view = xy
        elif self.bezier is None:
            raise ValueError('This point has no Bézier fitting coordinates')
        else:
            self.bezier = xy


@dataclass(frozen=True)
class Graduation:
    value: float
    point: XY
    tick_start: XY
    """offset of the tick start from point"""
    tick_end: XY
    label_pos: XY
    """offset of the label's top-left corner from point"""
    label: str
    label_wh: WH

    def moved(self, fn):
        return replace(self, point=fn(self.point))

    def tick(self, ratio: float = 1) -> Line:
        (x, y), (sx, sy), (ex, ey) = self.point, self.tick_start, self.tick_end
        return (x + sx * ratio, y + sy * ratio), (x + ex * ratio, y + ey * ratio)

    def label_xy(self) -> XY:
        return self.point[0] + self.label_pos[0], self.point[1] + self.label_pos[1]

    def hit_box(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over the tick and the label text."""
        (x1, y1), (x2, y2) = self.tick()
        lx, ly = self.label_xy()
        w, h = self.label_wh
        return min(x1, x2, lx), min(y1, y2, ly), max(x1, x2, lx + w), max(y1, y2, ly + h)


@dataclass
class GraduationOrder:
    graduations: list[Graduation] = field(default_factory=list)
    step: float = 1.0
    divider: float = 2.0
    """ratio to the next finer order, alternating 2 and 5"""

    def values(self) -> list[float]:
        return [g.value for g in self.graduations]


@dataclass
class Graduations:
    first_order: GraduationOrder = field(default_factory=GraduationOrder)
    """coarse, labeled"""
    second_order: GraduationOrder = field(default_factory=GraduationOrder)
    """fine, unlabeled"""

    def clear(self):
        self.first_order.graduations = []
        self.second_order.graduations = []

    def copy(self):
        return Graduations(replace(self.first_order, graduations=list(self.first_order.graduations)),
                           replace(self.second_order, graduations=list(self.second_order.graduations)))

    def move(self, fn):
        for order in (self.first_order, self.second_order):
            order.graduations = [g.moved(fn) for g in order.graduations]


def is_multiple(value: float, step: float) -> bool:
    q = value / step
    return abs(q - round(q)) < 1e-6


class NomographyScale:
    """One calibrated axis of a nomogram.

    Subclasses supply the geometry: get_point, build_graduation, find_intersection_with_scale,
    accepts_intersection and draw_path. The graduation engine here only works through those.
    """
    max_spacing = 200.0
    """refine when second order ticks are further apart than this, over the first order divider"""
    min_spacing = 20.0
    """coarsen when second order ticks are closer than this"""

    def __init__(self, name: str, start_value: float, end_value: float, variable_value: float,
                 start_point: ScalePoint, end_point: ScalePoint, equation: VariableEquation, screen_size: WH,
                 unit: str = None, factor: float = 1, exponent: float = 1, fixed: bool = False,
                 log_variable: bool = False, geometry: Geometry = None, screen_size_zoomed: WH = None):
        self.name = name
        self.unit = unit
        self.factor = factor
        self.exponent = exponent
        self.start_value = start_value
        self.end_value = end_value
        self.variable_value = variable_value
        self.start_point = start_point
        self.end_point = end_point
        self.equation = equation
        self.fixed = fixed
        self.log_variable = log_variable
        self.screen_size = screen_size
        self.screen_size_zoomed = screen_size_zoomed
        self.geometry = geometry or Geometry()
        self.index = -1
        self.zoom = {space: 1.0 for space in Space}
        self.zoom_level = {Space.TOP_VIEW: 1, Space.ZOOMED_VIEW: 1}
        self.graduations = {Space.TOP_VIEW: Graduations(), Space.ZOOMED_VIEW: Graduations()}

    def __repr__(self):
        return f'{type(self).__name__}({self.name!r}, {self.equation.value}, [{self.start_value}, {self.end_value}])'

    @property
    def direction(self) -> float:
        return -1.0 if self.start_value > self.end_value else 1.0

    @property
    def label(self) -> str:
        return f'{self.name} ({self.unit})' if self.unit else self.name

    def build_scale(self):
        raise NotImplementedError

    def get_point(self, variable_value: float, space: Space) -> XY | None:
        raise NotImplementedError

    def build_graduation(self, graduation_value: float, space: Space) -> Graduation | None:
        raise NotImplementedError

    def find_intersection_with_scale(self, line: Line, space: Space) -> XY | None:
        raise NotImplementedError

    def accepts_intersection(self, point: XY, space: Space) -> bool:
        raise NotImplementedError

    def draw_path(self, r, space: Space):
        raise NotImplementedError

    def value_point(self, space: Space) -> XY | None:
        return self.get_point(self.variable_value, space)

    def set_fixed(self, fixed: bool):
        self.fixed = fixed

    # Containment

    def screen_for(self, space: Space) -> WH:
        if space != Space.TOP_VIEW and self.screen_size_zoomed:
            return self.screen_size_zoomed
        return self.screen_size

    def zoomed_center(self) -> XY:
        w, h = self.screen_for(Space.ZOOMED_VIEW)
        return w / 2, h / 2

    def is_inside_bounds(self, variable_value: float) -> bool:
        lower, upper = sorted((self.start_value, self.end_value))
        return lower <= variable_value <= upper

    def is_inside_screen(self, item, space: Space, tolerance: float = 0.1) -> bool:
        """Whether a point, or any part of a graduation's tick and label, is on the screen."""
        w, h = self.screen_for(space)
        if isinstance(item, Graduation):
            min_x, min_y, max_x, max_y = item.hit_box()
            return not (max_x < 0 or min_x > w or max_y < 0 or min_y > h)
        x, y = item
        return not (x < -tolerance or x > w + tolerance or y < -tolerance or y > h + tolerance)

    def border_lines(self, space: Space) -> list[Line]:
        w, h = self.screen_for(space)
        return [((0, 0), (w, 0)), ((0, h), (w, h)), ((0, 0), (0, h)), ((w, 0), (w, h))]

    # Graduation sets

    @staticmethod
    def find_closest_valid_graduation_value(graduation_value: float, step: float) -> float:
        count = round_places(graduation_value / step, 0)
        below = count * step
        above = (count + 1) * step
        return below if abs(graduation_value - below) < abs(graduation_value - above) else above

    def graduation_run(self, first: float, last: float, step: float, space: Space) -> list[Graduation]:
        """Graduations from first to last inclusive, step apart in the scale's direction."""
        if (last - first) * self.direction < 0:
            return []
        count = int(round_places(abs(last - first) / step, 0))
        signed_step = step * self.direction
        result = []
        for i in range(count + 1):
            graduation = self.build_graduation(round_places(first + i * signed_step), space)
            if graduation is not None:
                result.append(graduation)
        return result

    def build_graduations(self, space: Space):
        """Starts over with a decade-sized first order spanning the whole range."""
        grads = self.graduations[space]
        grads.clear()
        self.zoom_level[space] = 1
        step = 10 ** round_places(math.log10(abs(self.end_value - self.start_value)), 0) / 10
        first = round_places(self.find_closest_valid_graduation_value(self.start_value, step))
        if not self.is_inside_bounds(first):
            first = round_places(first + step * self.direction)
        last = round_places(self.find_closest_valid_graduation_value(self.end_value, step))
        if not self.is_inside_bounds(last):
            last = round_places(last - step * self.direction)
        grads.first_order = GraduationOrder(self.graduation_run(first, last, step, space), step, 2.0)
        if len(grads.first_order.graduations) < 2:
            grads.clear()
            return
        grads.second_order = self.generate_next_order(grads.first_order, space)
        log.debug('%s: built %d graduations in %s with step %g',
                  self.name, len(grads.first_order.graduations), space.value, step)

    def generate_next_order(self, previous_order: GraduationOrder, space: Space) -> GraduationOrder:
        """The finer order over the same span, e.g. [1, 2, 3] with divider 2 gives [1, 1.5, 2, 2.5, 3]."""
        next_step = previous_order.step / previous_order.divider
        next_divider = 5.0 if previous_order.divider == 2.0 else 2.0
        values = previous_order.values()
        graduations = self.graduation_run(values[0], values[-1], next_step, space) if values else []
        return GraduationOrder(graduations, next_step, next_divider)

    def handle_movement(self, space: Space):
        """Keeps the graduation set to what is on screen, at a density suited to the zoom.

        Must be called after every change to the scale's position in that space.
        """
        grads = self.graduations[space]

        firsts = grads.first_order.graduations
        if firsts:
            if not self.is_inside_screen(firsts[0], space) and not self.is_inside_screen(firsts[1], space):
                firsts.pop(0)
                if len(firsts) == 1:
                    grads.clear()
                else:
                    self.remove_second_order(firsts[0].value, space, from_start=True)
        else:
            self.try_adding_graduations(space)

        firsts = grads.first_order.graduations
        if firsts:
            if not self.is_inside_screen(firsts[-1], space) and not self.is_inside_screen(firsts[-2], space):
                firsts.pop()
                if len(firsts) == 1:
                    grads.clear()
                else:
                    self.remove_second_order(firsts[-1].value, space, from_start=False)

        firsts = grads.first_order.graduations
        if firsts:
            step = grads.first_order.step * self.direction
            head = firsts[0]
            if self.is_inside_screen(head, space):
                value = round_places(head.value - step)
                graduation = self.build_graduation(value, space) if self.is_inside_bounds(value) else None
                if graduation is not None:
                    firsts.insert(0, graduation)
                    self.add_second_order(value, head.value, space, at_start=True)
            tail = firsts[-1]
            if self.is_inside_screen(tail, space):
                value = round_places(tail.value + step)
                graduation = self.build_graduation(value, space) if self.is_inside_bounds(value) else None
                if graduation is not None:
                    firsts.append(graduation)
                    self.add_second_order(value, tail.value, space, at_start=False)

        if grads.first_order.graduations and len(grads.second_order.graduations) > 1:
            spacing = self.average_distance_second_order(space)
            if spacing > self.max_spacing / grads.first_order.divider:
                self.zoom_graduations(space)
                self.zoom_level[space] += 1
            if self.zoom_level[space] > 1 and spacing < self.min_spacing:
                self.dezoom_graduations(space)
                self.zoom_level[space] -= 1

    def zoom_graduations(self, space: Space):
        """Refines one level: the second order becomes the first and a finer second order is generated."""
        grads = self.graduations[space]
        second = grads.second_order
        ordered = sorted(second.graduations, key=lambda g: g.value, reverse=self.direction < 0)
        grads.first_order = GraduationOrder(ordered, second.step, second.divider)
        grads.second_order = self.generate_next_order(grads.first_order, space)
        log.debug('%s: refined %s graduations to step %g', self.name, space.value, second.step)

    def dezoom_graduations(self, space: Space):
        """Coarsens one level: the first order becomes the second, its multiples of the coarser step the first."""
        grads = self.graduations[space]
        divider = grads.second_order.divider
        previous = grads.first_order
        step = previous.step * divider
        firsts = [g for g in previous.graduations if is_multiple(g.value, step)]
        if len(firsts) < 2:
            grads.first_order = GraduationOrder([], step, divider)
            grads.second_order = GraduationOrder([], previous.step, previous.divider)
            return
        lower, upper = sorted((firsts[0].value, firsts[-1].value))
        seconds = [g for g in previous.graduations if lower <= g.value <= upper]
        grads.first_order = GraduationOrder(firsts, step, divider)
        grads.second_order = GraduationOrder(seconds, previous.step, previous.divider)
        log.debug('%s: coarsened %s graduations to step %g', self.name, space.value, step)

    def try_adding_graduations(self, space: Space):
        """The scale is off screen: rebuild once it shows up again through a screen border."""
        if (self.is_inside_screen(self.start_point.get(space), space)
                and self.is_inside_screen(self.end_point.get(space), space)):
            self.build_graduations(space)
            return
        for border in self.border_lines(space):
            point = self.find_intersection_with_scale(border, space)
            if point is None or not self.is_inside_screen(point, space):
                continue
            if self.accepts_intersection(point, space):
                self.build_graduations(space)
                return

    def remove_second_order(self, up_to: float, space: Space, from_start: bool):
        """Drops second order graduations from one end until the one valued up_to."""
        second = self.graduations[space].second_order.graduations
        indexes = range(len(second)) if from_start else range(len(second) - 1, -1, -1)
        removed = 0
        for i in indexes:
            if math.isclose(second[i].value, up_to, rel_tol=1e-12, abs_tol=1e-12):
                break
            removed += 1
        if from_start:
            del second[:removed]
        elif removed:
            del second[-removed:]

    def add_second_order(self, start: float, stop: float, space: Space, at_start: bool):
        """Second order graduations from start towards stop, stop excluded."""
        second = self.graduations[space].second_order
        count = int(round_places(abs(stop - start) / second.step, 0))
        step = second.step * self.direction * (1 if at_start else -1)
        added = [g for g in (self.build_graduation(round_places(start + i * step), space) for i in range(count))
                 if g is not None]
        if at_start:
            second.graduations[0:0] = added
        else:
            second.graduations.extend(reversed(added))

    def average_distance_second_order(self, space: Space) -> float:
        second = self.graduations[space].second_order.graduations
        if len(second) < 2:
            return 0.0
        return sum(distance(second[i].point, second[i - 1].point) for i in range(1, len(second))) / (len(second) - 1)

    # Movement

    def translate_scale(self, translation: XY, space: Space):
        for point in (self.start_point, self.end_point):
            point.set(space, apply_pan(point.get(space), translation))
        if space in self.graduations:
            self.graduations[space].move(lambda p: apply_pan(p, translation))

    def zoom_scale(self, zoom: float, zoom_center: XY, space: Space):
        """Zooms about zoom_center, or about the view centre in the zoomed view."""
        if space == Space.ZOOMED_VIEW:
            zoom_center = self.zoomed_center()
        self.zoom[space] *= zoom
        for point in (self.start_point, self.end_point):
            point.set(space, apply_zoom(point.get(space), zoom, zoom_center))
        if space in self.graduations:
            self.graduations[space].move(lambda p: apply_zoom(p, zoom, zoom_center))

    # Display

    def displayed_value(self, space: Space) -> float:
        """The value rounded to what can be told apart at the current zoom."""
        magnitude = round_places(math.log10(abs(self.end_value - self.start_value) / self.zoom[space]), 0) - 3
        if magnitude >= 0:
            return round_places(self.variable_value, 0)
        return round_places(self.variable_value, int(-magnitude))

    def recenter_zoomed(self):
        """Moves the zoomed view so the current value sits at its centre."""
        point = self.value_point(Space.ZOOMED_VIEW)
        if point is None:
            return
        cx, cy = self.zoomed_center()
        self.translate_scale((cx - point[0], cy - point[1]), Space.ZOOMED_VIEW)
        if not self.graduations[Space.ZOOMED_VIEW].first_order.graduations:
            self.build_graduations(Space.ZOOMED_VIEW)

    def display_scale(self, r, space: Space):
        if space == Space.ZOOMED_VIEW:
            self.recenter_zoomed()
        self.draw_path(r, space)
        r.draw_graduations(self.graduations[space])
        if space == Space.TOP_VIEW:
            r.draw_variable_name(self)
        r.draw_variable_value(self, space)


# ----------------------4. Straight Scales----------------------------


class StraightScale(NomographyScale):
    """A scale along a segment, linear or logarithmic in its variable."""
    label_side = HAlign.L

    def build_scale(self):
        self.build_graduations(Space.TOP_VIEW)
        self.graduations[Space.ZOOMED_VIEW] = self.graduations[Space.TOP_VIEW].copy()
        self.zoom_level[Space.ZOOMED_VIEW] = self.zoom_level[Space.TOP_VIEW]

    def line(self, space: Space) -> Line:
        return self.start_point.get(space), self.end_point.get(space)

    def fraction_of(self, variable_value: float) -> float | None:
        if self.log_variable:
            if variable_value <= 0:
                return None
            log_start = math.log(self.start_value)
            return (math.log(variable_value) - log_start) / (math.log(self.end_value) - log_start)
        return (variable_value - self.start_value) / (self.end_value - self.start_value)

    def value_at_fraction(self, fraction: float) -> float:
        if self.log_variable:
            log_start = math.log(self.start_value)
            return math.exp(log_start + fraction * (math.log(self.end_value) - log_start))
        return self.start_value + fraction * (self.end_value - self.start_value)

    def get_point(self, variable_value: float, space: Space) -> XY | None:
        fraction = self.fraction_of(variable_value)
        if fraction is None:
            return None
        (sx, sy), (ex, ey) = self.line(space)
        return sx + fraction * (ex - sx), sy + fraction * (ey - sy)

    def get_variable_value(self, point: XY, space: Space) -> float:
        (sx, sy), (ex, ey) = self.line(space)
        dx, dy = ex - sx, ey - sy
        length_sq = dx * dx + dy * dy
        if length_sq == 0:
            return self.start_value
        return self.value_at_fraction(((point[0] - sx) * dx + (point[1] - sy) * dy) / length_sq)

    def compute_projection(self, point: XY, space: Space) -> XY:
        return project_onto_line(point, self.line(space))

    def find_intersection_with_scale(self, line: Line, space: Space) -> XY | None:
        return find_intersection(line, self.line(space))

    def accepts_intersection(self, point: XY, space: Space) -> bool:
        return self.is_inside_bounds(self.get_variable_value(point, space))

    def build_graduation(self, graduation_value: float, space: Space) -> Graduation | None:
        graduation_value = round_places(graduation_value)
        point = self.get_point(graduation_value, space)
        if point is None:
            return None
        g = self.geometry
        label = Sym.num_sym(graduation_value)
        w, h = Style.label_dims(label)
        if self.label_side == HAlign.L:
            label_x = -g.GL - g.label_gap - w / 2
        else:
            label_x = -g.GL + g.label_gap + w / 2
        return Graduation(graduation_value, point, (-g.GL, 0), (g.GL, 0), (label_x, -h / 2), label, (w, h))

    def draw_path(self, r, space: Space):
        r.draw_scale_line(self.line(space))


# ----------------------5. Curved Scales----------------------------


class CurvedScale(NomographyScale):
    """The negative root X of X² + B⋅X + C = 0, drawn as a Bézier fitted between the C and B scales.

    In units where C's start is the origin, B's start is at x = 1 and one unit of y is one unit
    of B, the true curve is y(x) = 1/(1 - x) - (x + 1), asymptotic to x = 1. The Bézier follows
    it from x = 0 up to the end found by compute_bezier_points.
    """
    x_end_initial = 0.96
    delta_initial = 0.1
    threshold = 0.01
    """how close, in pixels, the fitted end must come to the chord through C's and B's ends"""
    max_iterations = 200

    def __init__(self, c_scale: StraightScale, b_scale: StraightScale,
                 bezier_slope: BezierSlope = BezierSlope.LEGACY, **kwargs):
        super().__init__(**kwargs)
        self.c_scale = c_scale
        self.b_scale = b_scale
        self.bezier_slope = bezier_slope
        self.control_points = (ScalePoint.of((0, 0)), ScalePoint.of((0, 0)))
        self.bezier_iterations = 0

    def build_scale(self):
        self.compute_bezier_points()
        self.build_graduations(Space.TOP_VIEW)

    @staticmethod
    def fit_space(space: Space) -> Space:
        """Space of C and B that goes with the given space of the curve."""
        return Space.TOP_VIEW if space == Space.TOP_VIEW else Space.BEZIER

    def axis_scales(self, space: Space) -> tuple[XY, float, float]:
        """Origin and pixel sizes of one unit along x and y of the true curve."""
        fit = self.fit_space(space)
        origin = self.c_scale.start_point.get(fit)
        scale_x = self.b_scale.start_point.get(fit)[0] - origin[0]
        scale_y = self.b_scale.get_point(0, fit)[1] - self.b_scale.get_point(1, fit)[1]
        return origin, scale_x, scale_y

    # True curve

    @staticmethod
    def y_of(x: float) -> float:
        return -(x + 1 + 1 / (x - 1))

    @staticmethod
    def derivative_of(x: float) -> float:
        return 1 / ((x - 1) * (x - 1)) - 1

    @staticmethod
    def x_of_slope(slope: float) -> float:
        """Abscissa in [0, 1] where the true curve has the given slope."""
        root = math.sqrt(slope + 1)
        x1 = (slope + 1 + root) / (slope + 1)
        return x1 if 0 <= x1 <= 1 else (slope + 1 - root) / (slope + 1)

    def curve_point(self, x: float) -> XY:
        (ox, oy), scale_x, scale_y = self.axis_scales(Space.TOP_VIEW)
        return ox + x * scale_x, oy - self.y_of(x) * scale_y

    def derivative_line(self, x: float) -> Line:
        _, scale_x, scale_y = self.axis_scales(Space.TOP_VIEW)
        start = self.curve_point(x)
        return start, (start[0] + scale_x, start[1] - self.derivative_of(x) * scale_y)

    def chord_slope(self, x_start: float, x_end: float) -> float:
        if self.bezier_slope == BezierSlope.CHORD:
            return (self.y_of(x_end) - self.y_of(x_start)) / (x_end - x_start)
        return self.y_of(x_end) - self.y_of(x_start) / x_end - x_start

    # Bézier fitting

    def get_bezier_control_points(self, x_start: float, x_end: float) -> tuple[XY, XY] | None:
        """Control points matching the true curve and its tangents at both ends.

        The tangent parallel to the chord meets the end tangents at PR and PS; the control points
        sit 4/3 of the way from each end towards those.
        """
        slope = self.chord_slope(x_start, x_end)
        if slope <= -1:
            return None
        p0, p1 = self.curve_point(x_start), self.curve_point(x_end)
        tangent = self.derivative_line(self.x_of_slope(slope))
        pr = find_intersection(self.derivative_line(x_start), tangent)
        ps = find_intersection(self.derivative_line(x_end), tangent)
        if pr is None or ps is None:
            return None
        return ((p0[0] + 4 / 3 * (pr[0] - p0[0]), p0[1] + 4 / 3 * (pr[1] - p0[1])),
                (p1[0] - 4 / 3 * (p1[0] - ps[0]), p1[1] - 4 / 3 * (p1[1] - ps[1])))

    def fit_bezier(self, x_end: float) -> bool:
        control_points = self.get_bezier_control_points(0.0, x_end)
        if control_points is None:
            return False
        self.end_point = ScalePoint.of(self.curve_point(x_end))
        for point, xy in zip(self.control_points, control_points):
            point.top_view = xy
        return True

    def compute_bezier_points(self):
        """Fits the Bézier, searching for the end at which it meets the chord through C's and B's ends."""
        self.start_point = ScalePoint.of(self.c_scale.start_point.top_view)
        chord = (self.c_scale.end_point.top_view, self.b_scale.end_point.top_view)
        x_end, delta = self.x_end_initial, self.delta_initial
        best = None
        converged = False
        iterations = 0
        while iterations < self.max_iterations:
            iterations += 1
            crossing = intersect_line_bezier(chord, self.bezier(Space.TOP_VIEW)) if self.fit_bezier(x_end) else None
            if crossing is None:
                # fell short of the chord: go back up and narrow the search
                x_end = x_end + delta if x_end + delta < 1 else (x_end + 1) / 2
                delta /= 2
                continue
            gap = distance(crossing, self.end_point.top_view)
            if best is None or gap < best[0]:
                best = (gap, x_end)
            if gap < self.threshold:
                converged = True
                break
            x_end = x_end - delta if x_end - delta > 0 else x_end / 2
        self.bezier_iterations = iterations
        if not converged:
            if best is not None:
                log.warning('%s: Bézier end search stopped after %d iterations, keeping a gap of %g',
                            self.name, iterations, best[0])
                self.fit_bezier(best[1])
            else:
                log.warning('%s: Bézier never reached the end chord in %d iterations, falling back to x=%g',
                            self.name, iterations, self.x_end_initial)
                self.fit_bezier(self.x_end_initial)
        else:
            log.debug('%s: Bézier end found at x=%g in %d iterations', self.name, x_end, iterations)
        for point in self.control_points:
            point.zoomed_view = point.top_view
        self.start_value = negative_root(self.b_scale.start_value, self.c_scale.start_value)
        self.end_value = negative_root(self.b_scale.end_value, self.c_scale.end_value)

    def bezier(self, space: Space) -> Bezier:
        return (self.start_point.get(space), self.control_points[0].get(space),
                self.control_points[1].get(space), self.end_point.get(space))

    # Mapping

    def get_point(self, variable_value: float, space: Space) -> XY | None:
        """Where the line through B(-C_end/X - X) and C(C_end) crosses the Bézier."""
        if variable_value == 0:
            return self.start_point.get(space)
        fit = self.fit_space(space)
        c_value = self.c_scale.end_value
        b_value = -(c_value / variable_value) - variable_value
        line = (self.b_scale.get_point(b_value, fit), self.c_scale.get_point(c_value, fit))
        return intersect_line_bezier(line, self.bezier(space))

    def find_intersection_with_scale(self, line: Line, space: Space) -> XY | None:
        return intersect_line_bezier(line, self.bezier(space))

    def accepts_intersection(self, point: XY, space: Space) -> bool:
        return True

    def compute_variable_value_from_projection(self, point: XY, space: Space) -> float | None:
        """Value of the unfixed one of C and B whose index line through the fixed one passes point."""
        fit = self.fit_space(space)
        fixed, other = (self.c_scale, self.b_scale) if self.c_scale.fixed else (self.b_scale, self.c_scale)
        anchor = fixed.get_point(fixed.variable_value, fit)
        crossing = find_intersection((anchor, point), other.line(fit))
        if crossing is None:
            return None
        return other.get_variable_value(crossing, fit)

    def build_graduation(self, graduation_value: float, space: Space) -> Graduation | None:
        point = self.get_point(graduation_value, space)
        if point is None:
            return None
        (ox, _), scale_x, scale_y = self.axis_scales(space)
        # pixel axes are not orthonormal
        slope = self.derivative_of((point[0] - ox) / scale_x) * scale_y / scale_x
        angle = math.atan(-1 / slope) if slope != 0 else -math.pi / 2
        gl = self.geometry.GL
        dx, dy = math.cos(angle) * gl, math.sin(angle) * gl
        label = Sym.num_sym(graduation_value)
        w, h = Style.label_dims(label)
        return Graduation(graduation_value, point, (-dx, dy), (dx, -dy),
                          (-3 * dx - w / 2, 3 * dy - h / 2), label, (w, h))

    # Movement

    def translate_scale(self, translation: XY, space: Space):
        super().translate_scale(translation, space)
        for point in self.control_points:
            point.set(space, apply_pan(point.get(space), translation))
        if space == Space.ZOOMED_VIEW:
            self.c_scale.translate_scale(translation, Space.BEZIER)
            self.b_scale.translate_scale(translation, Space.BEZIER)

    def zoom_scale(self, zoom: float, zoom_center: XY, space: Space):
        super().zoom_scale(zoom, zoom_center, space)
        if space == Space.ZOOMED_VIEW:
            zoom_center = self.zoomed_center()
        for point in self.control_points:
            point.set(space, apply_zoom(point.get(space), zoom, zoom_center))
        if space == Space.ZOOMED_VIEW:
            self.c_scale.zoom_scale(zoom, zoom_center, Space.BEZIER)
            self.b_scale.zoom_scale(zoom, zoom_center, Space.BEZIER)

    def draw_path(self, r, space: Space):
        r.draw_scale_curve(self.bezier(space))


# --------------------------6. Nomograms----------------------------


@dataclass
class ScaleInitializer:
    """How to build one scale: its variable, its coefficients in the equation and its range."""
    name: str
    unit: str = None
    factor: float = 1.0
    exponent: float = 1.0
    range: tuple[float, float] = None

    @classmethod
    def from_dict(cls, scale_def: dict):
        check_keys(cls, scale_def, f'Scale {scale_def.get("name")}')
        if 'range' in scale_def:
            scale_range = scale_def['range']
            if len(scale_range) != 2:
                raise ValueError(f'Range of {scale_def.get("name")} must be [start, end], got {scale_range}')
            scale_def['range'] = (float(scale_range[0]), float(scale_range[1]))
        return cls(**scale_def)

    def mid_value(self) -> float:
        return (self.range[0] + self.range[1]) / 2


@dataclass
class IndexLine:
    start_point: XY = (0, 0)
    end_point: XY = (0, 0)

    def translate_line(self, translation: XY):
        self.start_point = apply_pan(self.start_point, translation)
        self.end_point = apply_pan(self.end_point, translation)

    def zoom_line(self, zoom: float, zoom_center: XY):
        self.start_point = apply_zoom(self.start_point, zoom, zoom_center)
        self.end_point = apply_zoom(self.end_point, zoom, zoom_center)


class NomogramListener:
    """Receives a Nomogram's refresh notifications. This one ignores them."""

    def build_view(self, nomogram):
        pass

    def reload_top_view(self):
        pass

    def reload_bottom_view(self):
        pass


class Nomogram:
    """Three coupled scales and the index line read across them.

    The equation between the scales' values holds after every successful update. An update that
    would push a scale out of its range is rejected and leaves everything as it was.
    """
    second_degree_limit = 60
    """largest C and B end magnitude the Bézier approximation of the curved scale is good for"""

    def __init__(self, name: str, operation: OperationType, input1: ScaleInitializer, input2: ScaleInitializer,
                 output: ScaleInitializer, constant: float = None, kind: str = 'custom', equation: str = None,
                 bezier_slope: BezierSlope = BezierSlope.LEGACY, style: Style = None, geometry: Geometry = None,
                 listener: NomogramListener = None):
        self.name = name
        self.operation = operation
        self.initializers = {VariableEquation.INPUT1: input1, VariableEquation.INPUT2: input2,
                             VariableEquation.OUTPUT: output}
        if constant is None:
            constant = 1.0 if operation == OperationType.MULTIPLICATION else 0.0
        self.constant = constant
        self.kind = kind
        """'premade' or 'custom'"""
        self.equation = equation
        self.bezier_slope = bezier_slope
        self.style = style or Style()
        self.geometry = geometry or Geometry()
        self.listener = listener or NomogramListener()
        self.screen_size: WH = self.geometry.screen_wh
        self.scales: list[NomographyScale] = []
        self.index_line = IndexLine()
        self.dragging: set[VariableEquation] = set()
        """scales whose value the finger on the top view is dragging"""
        self.detail_dragging = False
        self.validate()

    def __repr__(self):
        return f'Nomogram({self.name!r}, {self.operation.value})'

    def validate(self):
        """Raises ValueError when the initializers cannot make this kind of nomogram."""
        init_a, init_b, init_c = self.initializers.values()
        for init in (init_a, init_b):
            if init.range is None:
                raise ValueError(f'{self.name}: {init.name} needs a range')
            if init.range[0] == init.range[1]:
                raise ValueError(f'{self.name}: {init.name} range start and end are both {init.range[0]}')
        if init_c.range is not None:
            raise ValueError(f'{self.name}: the range of {init_c.name} follows from the inputs')
        if self.operation == OperationType.ADDITION:
            if 0 in (init_a.factor, init_b.factor, init_c.factor):
                raise ValueError(f'{self.name}: factors must not be 0')
        elif self.operation == OperationType.MULTIPLICATION:
            if min(*init_a.range, *init_b.range) <= 0:
                raise ValueError(f'{self.name}: multiplication ranges must be positive')
            if self.constant <= 0 or min(init_a.factor, init_b.factor, init_c.factor) <= 0:
                raise ValueError(f'{self.name}: multiplication constant and factors must be positive')
            if 0 in (init_a.exponent, init_b.exponent, init_c.exponent):
                raise ValueError(f'{self.name}: exponents must not be 0')
        else:
            c_end, b_end = init_a.range[1], init_b.range[1]
            if init_a.range[0] != 0 or init_b.range[0] != 0:
                raise ValueError(f'{self.name}: {init_a.name} and {init_b.name} ranges must start at 0')
            if c_end >= 0:
                raise ValueError(f'{self.name}: {init_a.name} range must end below 0')
            if b_end != -c_end:
                raise ValueError(f'{self.name}: {init_b.name} range must end at {-c_end}')
            if abs(c_end) > self.second_degree_limit:
                raise ValueError(f'{self.name}: ranges cannot go past ±{self.second_degree_limit}')

    @classmethod
    def from_dict(cls, nomogram_def: dict, kind: str = 'custom'):
        nomogram_def = copy.deepcopy(nomogram_def)
        for key in ('name', 'operation', 'input1', 'input2', 'output'):
            if key not in nomogram_def:
                raise ValueError(f'Nomogram definition is missing "{key}"')
        name = nomogram_def.pop('name')
        operation = OperationType(nomogram_def.pop('operation'))
        bezier_slope = BezierSlope(nomogram_def.pop('bezier_slope', BezierSlope.LEGACY.value))
        initializers = [ScaleInitializer.from_dict(nomogram_def.pop(key)) for key in ('input1', 'input2', 'output')]
        constant = nomogram_def.pop('constant', None)
        equation = nomogram_def.pop('equation', None)
        style = Style.from_dict(nomogram_def.pop('style', {}))
        geometry = Geometry.from_dict(nomogram_def.pop('geometry', {}))
        if nomogram_def:
            raise ValueError(f'{name}: unknown keys {", ".join(nomogram_def)}')
        return cls(name, operation, *initializers, constant=constant, kind=kind, equation=equation,
                   bezier_slope=bezier_slope, style=style, geometry=geometry)

    @classmethod
    def from_toml_file(cls, toml_filename: str):
        return cls.from_dict(toml.load(toml_filename))

    example_dir_path = os.path.join(os.path.dirname(os.path.realpath(__file__)), 'examples')

    @classmethod
    def from_example(cls, example_name: str):
        return cls.from_toml_file(os.path.join(cls.example_dir_path, f'Nomogram-{example_name}.toml'))

    @classmethod
    def load(cls, nomogram_name: str):
        if nomogram_name in Nomograms.names():
            return Nomograms.make(nomogram_name)
        return cls.from_toml_file(nomogram_name) if os.path.exists(nomogram_name) else cls.from_example(nomogram_name)

    @classmethod
    def example_names(cls):
        for fn in sorted(os.listdir(cls.example_dir_path)):
            if match := re.match(r'Nomogram-(.*)\.toml$', fn):
                yield match.group(1)

    # Construction

    def init_scales(self, screen_size: WH = None):
        """Builds the three scales for a view of the given size, then the index line."""
        self.screen_size = screen_size or self.screen_size
        init_a, init_b, init_c = self.initializers.values()
        if self.operation == OperationType.ADDITION:
            scales = self.build_addition_scales(init_a, init_b, init_c, self.constant, self.screen_size)
        elif self.operation == OperationType.MULTIPLICATION:
            scales = self.build_multiplication_scales(init_a, init_b, init_c, self.constant, self.screen_size)
        else:
            scales = self.build_second_degree_scales(init_a, init_b, init_c, self.screen_size)
        self.scales = scales
        self.dragging.clear()
        self.detail_dragging = False
        self.update_index_line()
        log.debug('%s: scales %s', self.name, self.scales)

    def straight_scale(self, init: ScaleInitializer, equation: VariableEquation, start_xy: XY, end_xy: XY,
                       start_value: float, end_value: float, variable_value: float,
                       fixed=False, with_bezier=False) -> StraightScale:
        return StraightScale(name=init.name, unit=init.unit, factor=init.factor, exponent=init.exponent,
                             start_value=start_value, end_value=end_value, variable_value=variable_value,
                             start_point=ScalePoint.of(start_xy, with_bezier),
                             end_point=ScalePoint.of(end_xy, with_bezier),
                             equation=equation, fixed=fixed, screen_size=self.screen_size,
                             geometry=self.geometry, screen_size_zoomed=self.geometry.zoomed_wh)

    def build_addition_scales(self, init_a: ScaleInitializer, init_b: ScaleInitializer, init_c: ScaleInitializer,
                              added_term: float, screen_size: WH, build=True) -> list[StraightScale]:
        """fC⋅C = fA⋅A + fB⋅B + added_term, on three parallel scales.

        A and B start on a unit layout; C goes where the index lines of two combinations with equal
        sums cross, then all three move to left, middle and right slots keeping their proportions.
        """
        a = self.straight_scale(init_a, VariableEquation.INPUT1, (0, 100), (0, 0), *init_a.range, init_a.mid_value())
        b = self.straight_scale(init_b, VariableEquation.INPUT2, (100, 100), (100, 0), *init_b.range, init_b.mid_value())
        b_value = (a.factor * a.end_value + b.factor * b.start_value - a.factor * a.start_value) / b.factor
        crossing = find_intersection((a.end_point.top_view, b.start_point.top_view),
                                     (a.start_point.top_view, b.get_point(b_value, Space.TOP_VIEW)))
        if crossing is None:
            raise ValueError(f'{self.name}: no place for the {init_c.name} scale')
        c_x = crossing[0]

        def output_for(value_a, value_b):
            return (a.factor * value_a + b.factor * value_b + added_term) / init_c.factor

        c = self.straight_scale(init_c, VariableEquation.OUTPUT, (c_x, 100), (c_x, 0),
                                output_for(a.start_value, b.start_value), output_for(a.end_value, b.end_value),
                                output_for(a.variable_value, b.variable_value), fixed=True)
        self.place_in_slots([a, b, c], screen_size, build=build)
        return sorted([a, b, c], key=lambda sc: sc.index)

    def place_in_slots(self, scales: list[StraightScale], screen_size: WH, build=True):
        w, h = screen_size
        pad_x, pad_y = self.geometry.padding(screen_size)
        xs = [sc.start_point.top_view[0] for sc in scales]
        if len(set(xs)) < len(xs):
            raise ValueError(f'{self.name}: scales would overlap')
        min_x, max_x = min(xs), max(xs)
        for sc, x in zip(scales, xs):
            if x == min_x:
                new_x, sc.index = pad_x, 0
            elif x == max_x:
                new_x, sc.index = w - pad_x, 2
            else:
                new_x, sc.index = pad_x + (x - min_x) / (max_x - min_x) * (w - 2 * pad_x), 1
            sc.start_point = ScalePoint.of((new_x, h - pad_y))
            sc.end_point = ScalePoint.of((new_x, pad_y))
            if build:
                sc.build_scale()

    def build_multiplication_scales(self, init_a: ScaleInitializer, init_b: ScaleInitializer,
                                    init_c: ScaleInitializer, constant: float, screen_size: WH) -> list[StraightScale]:
        """fC⋅C^eC = k⋅fA⋅A^eA⋅fB⋅B^eB, laid out as the addition of the logarithms."""
        log_a = replace(init_a, factor=init_a.exponent, exponent=1.0, range=tuple(math.log(v) for v in init_a.range))
        log_b = replace(init_b, factor=init_b.exponent, exponent=1.0, range=tuple(math.log(v) for v in init_b.range))
        log_c = replace(init_c, factor=init_c.exponent, exponent=1.0)
        added_term = math.log(constant * init_a.factor * init_b.factor / init_c.factor)
        scales = self.build_addition_scales(log_a, log_b, log_c, added_term, screen_size, build=False)
        inits = {VariableEquation.INPUT1: init_a, VariableEquation.INPUT2: init_b, VariableEquation.OUTPUT: init_c}
        for sc in scales:
            init = inits[sc.equation]
            if init.range is not None:
                sc.start_value, sc.end_value = init.range
            else:
                sc.start_value = round_places(math.exp(sc.start_value))
                sc.end_value = round_places(math.exp(sc.end_value))
            sc.variable_value = math.exp(sc.variable_value)
            sc.factor, sc.exponent = init.factor, init.exponent
            sc.log_variable = True
            sc.build_scale()
        return scales

    def build_second_degree_scales(self, init_c: ScaleInitializer, init_b: ScaleInitializer,
                                   init_x: ScaleInitializer, screen_size: WH) -> list[NomographyScale]:
        """X² + B⋅X + C = 0: C on the left, B on the right, X curved between them."""
        w, h = screen_size
        pad_x, pad_y = self.geometry.padding(screen_size)
        unit_c = replace(init_c, factor=1.0, exponent=1.0)
        unit_b = replace(init_b, factor=1.0, exponent=1.0)
        c = self.straight_scale(unit_c, VariableEquation.INPUT1, (pad_x, h - pad_y), (pad_x, pad_y),
                                *init_c.range, init_c.mid_value(), with_bezier=True)
        c.index = 0
        c.build_scale()
        b = self.straight_scale(unit_b, VariableEquation.INPUT2, (w - pad_x, h - pad_y), (w - pad_x, pad_y),
                                *init_b.range, init_b.mid_value(), with_bezier=True)
        b.index = 2
        b.build_scale()
        x = CurvedScale(c, b, self.bezier_slope, name=init_x.name, unit=init_x.unit,
                        start_value=0.0, end_value=0.0,
                        variable_value=negative_root(b.variable_value, c.variable_value),
                        start_point=ScalePoint.of((0, 0)), end_point=ScalePoint.of((0, 0)),
                        equation=VariableEquation.OUTPUT, fixed=True, screen_size=screen_size,
                        geometry=self.geometry, screen_size_zoomed=self.geometry.zoomed_wh)
        x.index = 1
        x.build_scale()
        return [c, x, b]

    # Lookup

    def scale_for(self, equation: VariableEquation) -> NomographyScale:
        return next(sc for sc in self.scales if sc.equation == equation)

    def scale_named(self, name: str) -> NomographyScale:
        for sc in self.scales:
            if sc.name == name:
                return sc
        raise KeyError(f'{self.name} has no scale named {name!r}')

    # Values

    def update_variable_value(self, scale: NomographyScale, variable_value: float) -> bool:
        """Sets a scale's value and solves the other unfixed scale, all or nothing."""
        if scale.fixed or not scale.is_inside_bounds(variable_value):
            log.debug('%s: %s = %g rejected, %s', self.name, scale.name, variable_value,
                      'scale is fixed' if scale.fixed else 'out of range')
            return False
        old_value = scale.variable_value
        scale.variable_value = variable_value
        for other in self.scales:
            if other is scale or other.fixed:
                continue
            other_value = self.compute_variable_value(other)
            if other_value is None or not other.is_inside_bounds(other_value):
                scale.variable_value = old_value
                log.debug('%s: %s = %g rejected, %s would become %s', self.name, scale.name, variable_value,
                          other.name, other_value)
                return False
            other.variable_value = other_value
        self.update_index_line()
        self.listener.reload_top_view()
        self.listener.reload_bottom_view()
        return True

    def compute_variable_value(self, scale: NomographyScale) -> float | None:
        """The value the equation gives for scale from the values of the other two.

        Rounded like the scale bounds, so a solution that lands on a bound stays inside it.
        """
        value = self.solve_for(scale)
        return None if value is None else round_places(value)

    def solve_for(self, scale: NomographyScale) -> float | None:
        a = self.scale_for(VariableEquation.INPUT1)
        b = self.scale_for(VariableEquation.INPUT2)
        c = self.scale_for(VariableEquation.OUTPUT)
        k = self.constant
        if self.operation == OperationType.ADDITION:
            if scale.equation == VariableEquation.OUTPUT:
                return (a.variable_value * a.factor + b.variable_value * b.factor + k) / c.factor
            if scale.equation == VariableEquation.INPUT1:
                return (c.variable_value * c.factor - b.variable_value * b.factor - k) / a.factor
            return (c.variable_value * c.factor - a.variable_value * a.factor - k) / b.factor
        if self.operation == OperationType.MULTIPLICATION:
            log_k = math.log(k) + math.log(a.factor) + math.log(b.factor) - math.log(c.factor)
            log_a, log_b, log_c = (a.exponent * math.log(a.variable_value), b.exponent * math.log(b.variable_value),
                                   c.exponent * math.log(c.variable_value))
            if scale.equation == VariableEquation.OUTPUT:
                return math.exp((log_a + log_b + log_k) / c.exponent)
            if scale.equation == VariableEquation.INPUT1:
                return math.exp((log_c - log_b - log_k) / a.exponent)
            return math.exp((log_c - log_a - log_k) / b.exponent)
        # X² + B⋅X + C = 0 with C on input1, B on input2, X on output
        c_value, b_value, x_value = a.variable_value, b.variable_value, c.variable_value
        if scale.equation == VariableEquation.INPUT2:
            return None if x_value == 0 else -(c_value + x_value * x_value) / x_value
        if scale.equation == VariableEquation.INPUT1:
            return -(x_value * x_value) - b_value * x_value
        return negative_root(b_value, c_value)

    def update_index_line(self):
        if self.operation == OperationType.SECOND_DEGREE:
            ends = self.scale_for(VariableEquation.INPUT1), self.scale_for(VariableEquation.INPUT2)
        else:
            by_index = {sc.index: sc for sc in self.scales}
            ends = by_index[0], by_index[2]
        start, end = (sc.value_point(Space.TOP_VIEW) for sc in ends)
        if start is not None and end is not None:
            self.index_line.start_point, self.index_line.end_point = start, end

    def update_range(self, scale: NomographyScale, lower_range: float = None, upper_range: float = None) -> bool:
        """Changes an input scale's range and rebuilds the nomogram, all or nothing."""
        if scale.equation == VariableEquation.OUTPUT or (lower_range is None and upper_range is None):
            log.debug('%s: range of %s cannot be edited that way', self.name, scale.name)
            return False
        init = self.initializers[scale.equation]
        if self.operation == OperationType.SECOND_DEGREE:
            if lower_range is not None:
                log.debug('%s: %s must start at 0', self.name, scale.name)
                return False
            other = VariableEquation.INPUT2 if scale.equation == VariableEquation.INPUT1 else VariableEquation.INPUT1
            new_ranges = {scale.equation: (0.0, upper_range), other: (0.0, -upper_range)}
        else:
            start, end = init.range
            new_ranges = {scale.equation: (start if lower_range is None else lower_range,
                                           end if upper_range is None else upper_range)}
        saved = {eq: self.initializers[eq].range for eq in new_ranges}
        for eq, new_range in new_ranges.items():
            self.initializers[eq].range = new_range
        try:
            self.validate()
            self.init_scales()
        except ValueError as e:
            for eq, old_range in saved.items():
                self.initializers[eq].range = old_range
            log.debug('%s: range edit rejected: %s', self.name, e)
            return False
        self.listener.build_view(self)
        self.listener.reload_top_view()
        self.listener.reload_bottom_view()
        return True

    def set_fixed(self, scale: NomographyScale) -> bool:
        """Fixes scale and frees the other two."""
        for sc in self.scales:
            sc.set_fixed(sc is scale)
        self.dragging.clear()
        return True

    def reset(self):
        self.init_scales(self.screen_size)
        self.listener.build_view(self)
        self.listener.reload_top_view()
        self.listener.reload_bottom_view()

    # Gestures, already decoded

    def drag_value(self, scale: NomographyScale, finger: XY, space: Space) -> bool:
        """Moves scale's value under the finger: along a straight scale, or through C and B for the curve."""
        if isinstance(scale, StraightScale):
            return self.update_variable_value(scale, scale.get_variable_value(scale.compute_projection(finger, space), space))
        updated = False
        for other in self.scales:
            if other is scale or other.fixed:
                continue
            value = scale.compute_variable_value_from_projection(finger, space)
            if value is not None:
                updated = self.update_variable_value(other, value) or updated
        return updated

    def zoom_top_view(self, zoom: float, zoom_center: XY):
        for sc in self.scales:
            sc.zoom_scale(zoom, zoom_center, Space.TOP_VIEW)
        for sc in self.scales:
            sc.handle_movement(Space.TOP_VIEW)
        self.index_line.zoom_line(zoom, zoom_center)
        self.listener.reload_top_view()

    def pan_top_view(self, translation: XY, finger: XY) -> bool:
        """Drags a value when the finger is on it (or already dragging it), pans the whole chart otherwise."""
        for sc in self.scales:
            if sc.fixed:
                continue
            point = sc.value_point(Space.TOP_VIEW)
            if sc.equation in self.dragging or (point is not None and
                                                is_in_hitbox(point, finger, self.geometry.hitbox_r)):
                self.dragging.add(sc.equation)
                self.drag_value(sc, finger, Space.TOP_VIEW)
        if self.dragging:
            for sc in self.scales:
                sc.handle_movement(Space.ZOOMED_VIEW)
        else:
            for sc in self.scales:
                sc.translate_scale(translation, Space.TOP_VIEW)
            self.index_line.translate_line(translation)
            for sc in self.scales:
                sc.handle_movement(Space.TOP_VIEW)
        self.listener.reload_top_view()
        self.listener.reload_bottom_view()
        return bool(self.dragging)

    def release(self):
        self.dragging.clear()
        self.detail_dragging = False

    def long_press(self, finger: XY) -> bool:
        for sc in self.scales:
            point = sc.value_point(Space.TOP_VIEW)
            if not sc.fixed and point is not None and is_in_hitbox(finger, point, self.geometry.hitbox_r):
                self.set_fixed(sc)
                self.listener.reload_top_view()
                self.listener.reload_bottom_view()
                return True
        return False

    def zoom_detail(self, scale: NomographyScale, zoom: float):
        scale.zoom_scale(zoom, (0, 0), Space.ZOOMED_VIEW)
        scale.handle_movement(Space.ZOOMED_VIEW)
        self.listener.reload_bottom_view()

    def drag_detail(self, scale: NomographyScale, finger: XY) -> bool:
        if scale.fixed:
            return False
        point = scale.value_point(Space.ZOOMED_VIEW)
        if point is not None and is_in_hitbox(point, finger, self.geometry.hitbox_r):
            self.detail_dragging = True
        if not self.detail_dragging:
            return False
        updated = self.drag_value(scale, finger, Space.ZOOMED_VIEW)
        for sc in self.scales:
            sc.handle_movement(Space.ZOOMED_VIEW)
        self.listener.reload_bottom_view()
        return updated

    # Labels

    def equation_label(self) -> str:
        if self.equation:
            return self.equation
        init_a, init_b, init_c = self.initializers.values()
        if self.operation == OperationType.ADDITION:
            rhs = f'{Sym.term(init_a.name, init_a.factor)} + {Sym.term(init_b.name, init_b.factor)}'
            if self.constant:
                rhs += f' {"-" if self.constant < 0 else "+"} {Sym.num_sym(abs(self.constant))}'
            return f'{Sym.term(init_c.name, init_c.factor)} = {rhs}'
        if self.operation == OperationType.MULTIPLICATION:
            terms = [] if self.constant == 1 else [Sym.num_sym(self.constant)]
            terms += [Sym.term(init.name, init.factor, init.exponent) for init in (init_a, init_b)]
            return f'{Sym.term(init_c.name, init_c.factor, init_c.exponent)} = {"⋅".join(terms)}'
        return f'{init_c.name}² + {init_b.name}{init_c.name} + {init_a.name} = 0'

    def equation_latex(self) -> str:
        return Sym.to_latex(self.equation_label())


class Nomograms:
    Addition = {'name': 'Addition', 'operation': 'addition', 'constant': 0,
                'input1': {'name': 'A', 'range': [0, 5]},
                'input2': {'name': 'B', 'range': [0, 10]},
                'output': {'name': 'C'}}
    Multiplication = {'name': 'Multiplication', 'operation': 'multiplication', 'constant': 1,
                      'input1': {'name': 'A', 'range': [2, 10]},
                      'input2': {'name': 'B', 'range': [5, 15]},
                      'output': {'name': 'C'}}
    SecondDegree = {'name': 'Second degree', 'operation': 'second_degree',
                    'input1': {'name': 'C', 'range': [0, -10]},
                    'input2': {'name': 'B', 'range': [0, 10]},
                    'output': {'name': 'X'}}
    InductiveReactance = {'name': 'Inductive reactance', 'operation': 'multiplication', 'constant': 2 * math.pi,
                          'equation': 'X = 2π⋅f⋅L',
                          'input1': {'name': 'f', 'unit': 'Hz', 'range': [2, 10]},
                          'input2': {'name': 'L', 'unit': 'H', 'range': [5, 15]},
                          'output': {'name': 'X', 'unit': 'Ω'}}
    BodyMassIndex = {'name': 'Body Mass Index', 'operation': 'multiplication',
                     'equation': 'BMI = Mass/Height²',
                     'input1': {'name': 'Mass', 'unit': 'Kg', 'range': [20, 150]},
                     'input2': {'name': 'Height', 'unit': 'm', 'exponent': -2, 'range': [1, 2]},
                     'output': {'name': 'BMI'}}

    @classmethod
    def names(cls) -> list[str]:
        return [k for k in keys_of(cls) if isinstance(getattr(cls, k), dict)]

    @classmethod
    def make(cls, name: str) -> Nomogram:
        """A fresh premade nomogram; each call returns a new one."""
        return Nomogram.from_dict(getattr(cls, name), kind='premade')


# ----------------------7. Rendering----------------------------


class Out:
    def __init__(self, r):
        self.r = r
    def draw_box(self, x0, y0, dx, dy, col, width=1): pass
    def draw_line(self, x0, y0, x1, y1, col, width=1): pass
    def draw_curve(self, bezier: Bezier, col, width=1): pass
    def draw_circle(self, xc, yc, r, col, fill=False): pass
    def draw_text(self, x_left, y_top, symbol: str, font, color): pass
    def draw_expression(self, xc, y_top, latex: zm.Latex, text: str, font, color): pass


class RasterOut(Out):
    r: ImageDraw.ImageDraw = None

    @classmethod
    def for_image(cls, i: Image.Image):
        return cls(ImageDraw.Draw(i))

    def draw_box(self, x0, y0, dx, dy, col, width=1):
        self.r.rectangle((x0, y0, x0 + dx, y0 + dy), outline=Color.to_pil(col), width=width)

    def draw_line(self, x0, y0, x1, y1, col, width=1):
        self.r.line((x0, y0, x1, y1), fill=Color.to_pil(col), width=width)

    def draw_curve(self, bezier: Bezier, col, width=1):
        self.r.line(sample_bezier(bezier), fill=Color.to_pil(col), width=width, joint='curve')

    def draw_circle(self, xc, yc, r, col, fill=False):
        self.r.circle((xc, yc), r, outline=Color.to_pil(col), fill=Color.to_pil(col) if fill else None)

    def draw_text(self, x_left, y_top, symbol: str, font, color):
        self.r.text((x_left, y_top), symbol, font=font, fill=Color.to_pil(color))

    def draw_expression(self, xc, y_top, latex: zm.Latex, text: str, font, color):
        # no math typesetting on rasters, the plain equation text stands in
        w, _ = Style.sym_dims(text, font)
        self.draw_text(round(xc - w / 2), y_top, text, font, color)


class SVGOut(Out):
    r: svg.Drawing = None
    font_family: str = Style.font_family

    @classmethod
    def init(cls, debug=False):
        if debug: zm.config.debug.on()

    @classmethod
    def for_drawing(cls, i: svg.Drawing, font_family: str = None):
        out = cls(i)
        if font_family:
            out.font_family = font_family
        return out

    @staticmethod
    def color_str(col):
        return Color.to_str(col)

    def draw_box(self, x0, y0, dx, dy, col, width=1):
        self.r.append(svg.Rectangle(x0, y0, dx, dy, fill='none', stroke=self.color_str(col), stroke_width=width))

    def draw_line(self, x0, y0, x1, y1, col, width=1):
        self.r.append(svg.Line(x0, y0, x1, y1, stroke=self.color_str(col), stroke_width=width))

    def draw_curve(self, bezier: Bezier, col, width=1):
        (x0, y0), (x1, y1), (x2, y2), (x3, y3) = bezier
        self.r.append(svg.Path(stroke=self.color_str(col), stroke_width=width, fill='none')
                      .M(x0, y0).C(x1, y1, x2, y2, x3, y3))

    def draw_circle(self, xc, yc, r, col, fill=False):
        color = self.color_str(col)
        self.r.append(svg.Circle(xc, yc, r, stroke=color, fill=color if fill else 'none'))

    def draw_text(self, x_left, y_top, symbol: str, font: ImageFont, col):
        self.r.append(svg.Text(symbol, font.size, x_left, y_top, font_family=self.font_family, fill=self.color_str(col),
                               text_anchor='start', dominant_baseline='hanging'))

    def draw_expression(self, xc, y_top, latex: zm.Latex, text: str, font, color):
        w, _ = latex.getsize()
        latex_svg = latex.svgxml()
        latex_svg.set('x', str(round(xc - w / 2)))
        latex_svg.set('y', str(y_top))
        desc = latex_svg.makeelement('desc', {})
        desc.text = text
        latex_svg.append(desc)
        self.r.append(svg.Raw(ElementTree.tostring(latex_svg, encoding='unicode')))


@dataclass(frozen=True)
class Renderer:
    r: Out = None
    geometry: Geometry = None
    style: Style = None

    @classmethod
    def to_image(cls, i, g: Geometry, s: Style):
        out = None
        if isinstance(i, Image.Image):
            out = RasterOut.for_image(i)
        elif isinstance(i, svg.Drawing):
            out = SVGOut.for_drawing(i, s.font_family)
        return cls(out, g, s)

    def draw_symbol(self, symbol: str, color, x_left: float, y_top: float, font: ImageFont):
        if DEBUG:
            w, h = self.style.sym_dims(symbol, font)
            self.r.draw_box(x_left, y_top, w, h, Color.GREY)
        self.r.draw_text(x_left, y_top, symbol, font, color)

    def draw_border(self, w: int, h: int):
        self.r.draw_box(0, 0, w - 1, h - 1, self.style.border_color, width=self.geometry.STT)

    def draw_scale_line(self, line: Line):
        (x0, y0), (x1, y1) = line
        self.r.draw_line(x0, y0, x1, y1, self.style.fg, self.geometry.STT)

    def draw_scale_curve(self, bezier: Bezier):
        self.r.draw_curve(bezier, self.style.fg, self.geometry.STT)

    def draw_graduations(self, graduations: Graduations):
        """Labeled full length ticks for the first order, bare half length ones for the second."""
        fg, font = self.style.fg, self.style.font_for(FontSize.N_SM)
        for graduation in graduations.first_order.graduations:
            (x0, y0), (x1, y1) = graduation.tick()
            self.r.draw_line(x0, y0, x1, y1, fg, self.geometry.STT)
            self.draw_symbol(graduation.label, fg, *graduation.label_xy(), font)
        for graduation in graduations.second_order.graduations:
            (x0, y0), (x1, y1) = graduation.tick(0.5)
            self.r.draw_line(x0, y0, x1, y1, fg)

    def draw_variable_name(self, scale: NomographyScale):
        font = self.style.font_for(FontSize.SC_LBL)
        x, y = scale.end_point.top_view
        w, h = Style.sym_dims(scale.label, font)
        self.draw_symbol(scale.label, self.style.fg, round(x - w / 2), y - self.geometry.name_offset - h / 2, font)

    def draw_variable_value(self, scale: NomographyScale, space: Space):
        """A dot at the value, hollow while the variable is fixed, with the value written beside it."""
        g = self.geometry
        point = scale.zoomed_center() if space == Space.ZOOMED_VIEW else scale.value_point(space)
        if point is None:
            return
        x, y = point
        self.r.draw_circle(x, y, g.dot_r, self.style.value_color, fill=not scale.fixed)
        self.draw_symbol(Sym.num_sym(scale.displayed_value(space)), self.style.value_color,
                         x + g.value_offset, y + g.value_offset, self.style.font_for(FontSize.N_SM))

    def draw_index_line(self, index_line: IndexLine):
        (x0, y0), (x1, y1) = index_line.start_point, index_line.end_point
        self.r.draw_line(x0, y0, x1, y1, self.style.value_color)

    def draw_equation(self, nomogram: Nomogram, xc: float):
        font = self.style.font_for(FontSize.TITLE)
        latex = zm.Latex(nomogram.equation_latex(), size=font.size, color=Color.to_str(self.style.fg), inline=True)
        self.r.draw_expression(xc, self.geometry.title_y, latex, nomogram.equation_label(), font, self.style.fg)


def image_for_rendering(style: Style, out_format: OutFormat, w: int, h: int):
    if out_format == OutFormat.PNG:
        return Image.new('RGB', (int(w), int(h)), Color.to_pil(style.bg))
    elif out_format == OutFormat.SVG:
        drawing = svg.Drawing(int(w), int(h), id_prefix='def_')
        drawing.append(svg.Rectangle(0, 0, int(w), int(h), fill=Color.to_str(style.bg)))
        return drawing


def save_image(img_to_save, basename: str, output_suffix=None):
    output_filename = f"{basename}{'.' + output_suffix if output_suffix else ''}"
    output_full_path = os.path.abspath(output_filename)
    if isinstance(img_to_save, Image.Image):
        output_full_path += '.png'
        img_to_save.save(output_full_path, 'PNG')
    elif isinstance(img_to_save, svg.Drawing):
        output_full_path += '.svg'
        img_to_save.save_svg(output_full_path)
    print(f'Result saved to: file://{output_full_path}')
    return output_full_path


def render_nomogram_mode(nomogram: Nomogram, out_format: OutFormat, nomogram_img=None):
    """The whole chart: border, scales with their values, index line and equation title."""
    w, h = nomogram.screen_size
    if nomogram_img is None:
        nomogram_img = image_for_rendering(nomogram.style, out_format, w, h)
    r = Renderer.to_image(nomogram_img, nomogram.geometry, nomogram.style)
    r.draw_border(w, h)
    for scale in nomogram.scales:
        scale.display_scale(r, Space.TOP_VIEW)
    r.draw_index_line(nomogram.index_line)
    r.draw_equation(nomogram, w / 2)
    return nomogram_img


def render_detail_mode(nomogram: Nomogram, scale: NomographyScale, out_format: OutFormat):
    """One scale in the zoomed view, centred on its value."""
    w, h = scale.screen_for(Space.ZOOMED_VIEW)
    detail_img = image_for_rendering(nomogram.style, out_format, w, h)
    r = Renderer.to_image(detail_img, nomogram.geometry, nomogram.style)
    r.draw_border(w, h)
    scale.display_scale(r, Space.ZOOMED_VIEW)
    g = nomogram.geometry
    r.draw_symbol(scale.label, nomogram.style.fg, g.title_y, g.title_y, nomogram.style.font_for(FontSize.SC_LBL))
    return detail_img


# ----------------------8. Commands------------------------------------------


def parse_assignment(arg: str) -> tuple[str, float]:
    name, sep, value = arg.partition('=')
    if not sep:
        raise ValueError(f'Expected NAME=VALUE, got {arg!r}')
    return name.strip(), float(value)


def parse_range(arg: str) -> tuple[str, float | None, float | None]:
    """NAME=LOWER:UPPER, where an empty side is left as it is."""
    name, sep, bounds = arg.partition('=')
    lower, sep2, upper = bounds.partition(':')
    if not sep or not sep2:
        raise ValueError(f'Expected NAME=LOWER:UPPER, got {arg!r}')
    return (name.strip(),
            float(lower) if lower.strip() else None,
            float(upper) if upper.strip() else None)


def main():
    """CLI processor for rendering nomograms and scale details."""
    import argparse
    args_parser = argparse.ArgumentParser()
    args_parser.add_argument('--nomogram',
                             default='Addition',
                             help=f'Premade nomogram ({", ".join(Nomograms.names())}),'
                                  f' example ({", ".join(Nomogram.example_names())}) or TOML file path')
    args_parser.add_argument('--format',
                             default=OutFormat.PNG.value,
                             choices=[f.value for f in OutFormat],
                             help='Output format')
    args_parser.add_argument('--set',
                             action='append', metavar='NAME=VALUE',
                             help='Set a variable, solving the unfixed one')
    args_parser.add_argument('--fix',
                             metavar='NAME',
                             help='Variable to hold fixed while others are set')
    args_parser.add_argument('--range',
                             action='append', metavar='NAME=LOWER:UPPER',
                             help='Change an input range before setting values')
    args_parser.add_argument('--zoom',
                             type=float,
                             help='Zoom the whole nomogram about its centre')
    args_parser.add_argument('--detail',
                             metavar='NAME',
                             help='Also render the zoomed view of this variable')
    args_parser.add_argument('--width', type=int, help='Width of the nomogram view')
    args_parser.add_argument('--height', type=int, help='Height of the nomogram view')
    args_parser.add_argument('--suffix',
                             help='Output filename suffix for variations')
    args_parser.add_argument('--debug',
                             action='store_true',
                             help='Log the scale engine and render text bounding boxes')
    cli_args = args_parser.parse_args()
    global DEBUG
    DEBUG = cli_args.debug
    logging.basicConfig(level=logging.DEBUG if DEBUG else logging.INFO,
                        format='%(asctime)s - %(name)s - [%(levelname)s] - %(message)s',
                        stream=sys.stdout)
    out_format: OutFormat = next(f for f in OutFormat if f.value == cli_args.format)
    SVGOut.init(debug=DEBUG)

    start_time = time.process_time()

    try:
        nomogram = Nomogram.load(cli_args.nomogram)
        g = nomogram.geometry
        nomogram.init_scales((cli_args.width or g.width, cli_args.height or g.height))
        for range_arg in cli_args.range or []:
            name, lower, upper = parse_range(range_arg)
            if not nomogram.update_range(nomogram.scale_named(name), lower, upper):
                args_parser.error(f'{nomogram.name}: range {range_arg} rejected')
        if cli_args.fix:
            nomogram.set_fixed(nomogram.scale_named(cli_args.fix))
        for set_arg in cli_args.set or []:
            name, value = parse_assignment(set_arg)
            if not nomogram.update_variable_value(nomogram.scale_named(name), value):
                args_parser.error(f'{nomogram.name}: {set_arg} rejected')
        detail_scale = nomogram.scale_named(cli_args.detail) if cli_args.detail else None
    except (ValueError, KeyError, OSError) as e:
        args_parser.error(str(e))
    log.info('%s: %s', nomogram.name,
             ', '.join(f'{sc.name} = {Sym.num_sym(sc.displayed_value(Space.TOP_VIEW))}' for sc in nomogram.scales))

    if cli_args.zoom:
        w, h = nomogram.screen_size
        nomogram.zoom_top_view(cli_args.zoom, (w / 2, h / 2))

    basename = nomogram.name.replace(' ', '')
    nomogram_img = render_nomogram_mode(nomogram, out_format)
    print(f'Nomogram render finished at: {round(time.process_time() - start_time, 3)} seconds')
    save_image(nomogram_img, f'{basename}.Nomogram', cli_args.suffix)

    if detail_scale is not None:
        detail_img = render_detail_mode(nomogram, detail_scale, out_format)
        print(f'Detail render finished at: {round(time.process_time() - start_time, 3)} seconds')
        save_image(detail_img, f'{basename}.{detail_scale.name}.Detail', cli_args.suffix)

    print(f'Program finished at: {round(time.process_time() - start_time, 3)} seconds')


if __name__ == '__main__':
    main()
