import math
import unittest
from unittest.mock import Mock, patch

import drawsvg as svg
from PIL import Image

import Nomography
from Nomography import (Space, VariableEquation, OperationType, OutFormat, BezierSlope,
                        Nomogram, Nomograms, ScalePoint, StraightScale, CurvedScale,
                        Sym, apply_zoom, find_intersection, cubic_roots, intersect_line_bezier,
                        round_places, negative_root, is_in_hitbox, project_onto_line,
                        render_nomogram_mode, render_detail_mode, parse_range, parse_assignment)


def make(name: str) -> Nomogram:
    nomogram = Nomograms.make(name)
    nomogram.init_scales()
    return nomogram


def straight(start_value, end_value, log_variable=False):
    sc = StraightScale(name='A', start_value=start_value, end_value=end_value,
                       variable_value=(start_value + end_value) / 2,
                       start_point=ScalePoint.of((100, 800)), end_point=ScalePoint.of((100, 100)),
                       equation=VariableEquation.INPUT1, screen_size=(900, 900), log_variable=log_variable)
    sc.build_scale()
    return sc


def collinear(p0, p1, p2, tolerance=1e-4):
    cross = (p1[0] - p0[0]) * (p2[1] - p0[1]) - (p1[1] - p0[1]) * (p2[0] - p0[0])
    return abs(cross) / max(math.dist(p0, p2), 1) < tolerance


class FundamentalFunctionsTestCase(unittest.TestCase):
    def test_apply_zoom(self):
        self.assertEqual(apply_zoom((2, 3), 2, (1, 1)), (3, 5))
        self.assertEqual(apply_zoom((2, 3), 1, (7, 9)), (2, 3))

    def test_find_intersection(self):
        x, y = find_intersection(((0, 0), (1, 1)), ((0, 1), (1, 0)))
        self.assertAlmostEqual(x, 0.5)
        self.assertAlmostEqual(y, 0.5)
        x, y = find_intersection(((2, 0), (2, 5)), ((0, 1), (4, 1)))
        self.assertAlmostEqual(x, 2)
        self.assertAlmostEqual(y, 1)

    def test_find_intersection_parallel(self):
        self.assertIsNone(find_intersection(((0, 0), (1, 1)), ((0, 1), (1, 2))))

    def test_cubic_roots(self):
        roots = sorted(cubic_roots(1, -1.6, 0.73, -0.09))
        self.assertEqual(len(roots), 3)
        for root, expected in zip(roots, (0.2, 0.5, 0.9)):
            self.assertAlmostEqual(root, expected)
        roots = cubic_roots(1, -0.25, 1, -0.25)
        self.assertEqual(len(roots), 1)
        self.assertAlmostEqual(roots[0], 0.25)

    def test_cubic_roots_degenerate(self):
        self.assertEqual(sorted(cubic_roots(0, 1, -1.5, 0.5)), [0.5, 1])

    def test_intersect_line_bezier(self):
        bezier = ((0, 0), (1, 1), (2, 2), (3, 3))
        x, y = intersect_line_bezier(((0, 3), (3, 0)), bezier)
        self.assertAlmostEqual(x, 1.5)
        self.assertAlmostEqual(y, 1.5)
        self.assertIsNone(intersect_line_bezier(((0, 3), (0.5, 2.5)), bezier))
        self.assertIsNone(intersect_line_bezier(((1, 1), (1, 1)), bezier))

    def test_round_places(self):
        self.assertEqual(round_places(2.5, 0), 3)
        self.assertEqual(round_places(-2.5, 0), -3)
        self.assertEqual(round_places(0.1 + 0.2), 0.3)

    def test_negative_root(self):
        self.assertEqual(negative_root(5, -6), -6)
        self.assertEqual(negative_root(0, 0), 0)
        self.assertIsNone(negative_root(1, 1))

    def test_hitbox(self):
        self.assertTrue(is_in_hitbox((0, 0), (30, 0)))
        self.assertFalse(is_in_hitbox((0, 0), (40, 0)))

    def test_projection(self):
        self.assertEqual(project_onto_line((1, 1), ((0, 0), (2, 0))), (1, 0))


class SymTestCase(unittest.TestCase):
    def test_num_sym(self):
        self.assertEqual(Sym.num_sym(2.0), '2')
        self.assertEqual(Sym.num_sym(2.50), '2.5')
        self.assertEqual(Sym.num_sym(-0.125), '-0.125')

    def test_term(self):
        self.assertEqual(Sym.term('A'), 'A')
        self.assertEqual(Sym.term('A', 2, 2), '2⋅A²')
        self.assertEqual(Sym.term('H', 1, -2), 'H⁻²')

    def test_to_latex(self):
        self.assertEqual(Sym.to_latex('X² + BX + C = 0'), 'X^{2} + BX + C = 0')
        self.assertEqual(Sym.to_latex('C = A⋅B'), r'C = A \cdot B')


class GraduationsTestCase(unittest.TestCase):
    def test_whole_range(self):
        sc = straight(0, 5)
        grads = sc.graduations[Space.TOP_VIEW]
        self.assertEqual(grads.first_order.values(), [0, 1, 2, 3, 4, 5])
        self.assertEqual(grads.first_order.step, 1)
        self.assertEqual(grads.first_order.divider, 2)
        self.assertEqual(grads.second_order.step, 0.5)
        self.assertEqual(len(grads.second_order.graduations), 11)
        self.assertEqual([g.label for g in grads.first_order.graduations], ['0', '1', '2', '3', '4', '5'])

    def test_decreasing_range(self):
        sc = straight(10, 0)
        self.assertEqual(sc.graduations[Space.TOP_VIEW].first_order.values(), list(range(10, -1, -1)))

    def test_fractional_range(self):
        sc = straight(0.3, 2.7)
        grads = sc.graduations[Space.TOP_VIEW].first_order
        self.assertEqual(grads.step, 0.1)
        self.assertEqual(grads.values()[0], 0.3)
        self.assertEqual(grads.values()[-1], 2.7)

    def test_unaligned_range(self):
        sc = straight(-3.7, 12.2)
        self.assertEqual(sc.graduations[Space.TOP_VIEW].first_order.values(), list(range(-3, 13)))

    def test_graduations_on_scale(self):
        sc = straight(0, 5)
        for g in sc.graduations[Space.TOP_VIEW].second_order.graduations:
            self.assertAlmostEqual(g.point[0], 100)
            self.assertAlmostEqual(sc.get_variable_value(g.point, Space.TOP_VIEW), g.value)

    def test_zoomed_view_starts_as_a_copy(self):
        sc = straight(0, 5)
        self.assertEqual(sc.graduations[Space.ZOOMED_VIEW].first_order.values(),
                         sc.graduations[Space.TOP_VIEW].first_order.values())

    def test_log_mapping(self):
        sc = straight(1, 100, log_variable=True)
        _, y = sc.get_point(10, Space.TOP_VIEW)
        self.assertAlmostEqual(y, 450)
        self.assertAlmostEqual(sc.get_variable_value((100, 450), Space.TOP_VIEW), 10)
        self.assertIsNone(sc.get_point(0, Space.TOP_VIEW))

    def test_zero_length_segment(self):
        sc = StraightScale(name='A', start_value=3, end_value=8, variable_value=5,
                           start_point=ScalePoint.of((100, 100)), end_point=ScalePoint.of((100, 100)),
                           equation=VariableEquation.INPUT1, screen_size=(900, 900))
        self.assertEqual(sc.get_variable_value((400, 250), Space.TOP_VIEW), 3)


class HandleMovementTestCase(unittest.TestCase):
    def setUp(self):
        self.nomogram = make('Addition')
        self.c = self.nomogram.scale_named('C')

    def first_order(self):
        return self.c.graduations[Space.TOP_VIEW].first_order

    def test_zoom_refines_and_dezoom_coarsens(self):
        center = (self.c.start_point.top_view[0], 450)
        self.c.zoom_scale(5, center, Space.TOP_VIEW)
        self.c.handle_movement(Space.TOP_VIEW)
        self.assertEqual(self.c.zoom_level[Space.TOP_VIEW], 2)
        self.assertEqual(self.first_order().step, 0.5)
        self.assertEqual(self.c.graduations[Space.TOP_VIEW].second_order.step, 0.1)
        self.c.zoom_scale(1 / 5, center, Space.TOP_VIEW)
        self.c.handle_movement(Space.TOP_VIEW)
        self.assertEqual(self.c.zoom_level[Space.TOP_VIEW], 1)
        self.assertEqual(self.first_order().step, 1)

    def test_pan_off_screen_and_back(self):
        self.c.translate_scale((2000, 0), Space.TOP_VIEW)
        for _ in range(20):
            self.c.handle_movement(Space.TOP_VIEW)
            self.assertNotEqual(len(self.first_order().graduations), 1)
        self.assertEqual(self.first_order().graduations, [])
        self.c.translate_scale((-2000, 0), Space.TOP_VIEW)
        self.c.handle_movement(Space.TOP_VIEW)
        self.assertEqual(self.first_order().values(), list(range(0, 16)))

    def test_displayed_value(self):
        a = self.nomogram.scale_named('A')
        a.variable_value = 2.123456
        self.assertEqual(a.displayed_value(Space.TOP_VIEW), 2.12)


class AdditionTestCase(unittest.TestCase):
    def setUp(self):
        self.nomogram = make('Addition')
        self.a, self.c, self.b = self.nomogram.scales

    def test_layout(self):
        self.assertEqual([sc.name for sc in self.nomogram.scales], ['A', 'C', 'B'])
        self.assertEqual([sc.index for sc in self.nomogram.scales], [0, 1, 2])
        self.assertEqual(self.a.start_point.top_view, (100, 800))
        self.assertEqual(self.a.end_point.top_view, (100, 100))
        self.assertEqual(self.b.start_point.top_view[0], 800)
        self.assertAlmostEqual(self.c.start_point.top_view[0], 566.6666666, places=4)
        self.assertEqual((self.c.start_value, self.c.end_value), (0, 15))

    def test_initial_values(self):
        self.assertEqual((self.a.variable_value, self.b.variable_value, self.c.variable_value), (2.5, 5, 7.5))
        self.assertTrue(self.c.fixed)
        self.assertFalse(self.a.fixed or self.b.fixed)

    def test_update_solves_unfixed(self):
        self.assertTrue(self.nomogram.update_variable_value(self.b, 3))
        self.assertAlmostEqual(self.a.variable_value, 4.5)
        self.nomogram.set_fixed(self.b)
        self.assertTrue(self.nomogram.update_variable_value(self.a, 2))
        self.assertAlmostEqual(self.c.variable_value, 5)
        self.nomogram.set_fixed(self.a)
        self.assertTrue(self.nomogram.update_variable_value(self.c, 10))
        self.assertAlmostEqual(self.b.variable_value, 8)

    def test_output_on_index_line(self):
        self.nomogram.set_fixed(self.b)
        self.nomogram.update_variable_value(self.a, 4)
        line = self.nomogram.index_line
        self.assertTrue(collinear(line.start_point, self.c.value_point(Space.TOP_VIEW), line.end_point))
        self.assertEqual(line.start_point, self.a.value_point(Space.TOP_VIEW))

    def test_rejections(self):
        self.assertFalse(self.nomogram.update_variable_value(self.a, 6))
        self.assertFalse(self.nomogram.update_variable_value(self.c, 3))
        self.assertEqual(self.a.variable_value, 2.5)

    def test_rejection_rolls_back(self):
        self.assertTrue(self.nomogram.update_range(self.b, upper_range=5))
        a, c, b = self.nomogram.scales
        self.assertTrue(self.nomogram.update_variable_value(a, 2))
        self.assertAlmostEqual(b.variable_value, 3)
        self.nomogram.set_fixed(a)
        self.assertFalse(self.nomogram.update_variable_value(c, 10))
        self.assertEqual(a.variable_value, 2)
        self.assertAlmostEqual(b.variable_value, 3)
        self.assertAlmostEqual(c.variable_value, 5)

    def test_range_edits(self):
        self.assertFalse(self.nomogram.update_range(self.a, lower_range=5))
        self.assertFalse(self.nomogram.update_range(self.c, upper_range=20))
        self.assertFalse(self.nomogram.update_range(self.a))
        self.assertEqual(self.nomogram.initializers[VariableEquation.INPUT1].range, (0, 5))
        self.assertTrue(self.nomogram.update_range(self.a, upper_range=10))
        self.assertEqual(self.nomogram.scale_named('C').end_value, 20)

    def test_listener(self):
        listener = self.nomogram.listener = Mock()
        self.nomogram.update_variable_value(self.a, 3)
        listener.reload_top_view.assert_called_once()
        listener.reload_bottom_view.assert_called_once()
        self.nomogram.update_range(self.a, upper_range=10)
        listener.build_view.assert_called_once_with(self.nomogram)

    def test_equation_label(self):
        self.assertEqual(self.nomogram.equation_label(), 'C = A + B')
        nomogram = Nomogram.from_dict({'name': 'Offset', 'operation': 'addition', 'constant': -3,
                                       'input1': {'name': 'A', 'factor': 2, 'range': [0, 5]},
                                       'input2': {'name': 'B', 'range': [0, 10]},
                                       'output': {'name': 'C'}})
        self.assertEqual(nomogram.equation_label(), 'C = 2⋅A + B - 3')


class MultiplicationTestCase(unittest.TestCase):
    def setUp(self):
        self.nomogram = make('Multiplication')

    def test_ranges(self):
        c = self.nomogram.scale_for(VariableEquation.OUTPUT)
        self.assertAlmostEqual(c.start_value, 10)
        self.assertAlmostEqual(c.end_value, 150)
        self.assertTrue(all(sc.log_variable for sc in self.nomogram.scales))
        self.assertAlmostEqual(c.variable_value, math.sqrt(1500))

    def test_update_solves_unfixed(self):
        a, b, c = (self.nomogram.scale_named(name) for name in 'ABC')
        self.assertTrue(self.nomogram.update_variable_value(b, 5))
        self.assertAlmostEqual(a.variable_value, math.sqrt(1500) / 5)
        self.nomogram.set_fixed(b)
        self.assertTrue(self.nomogram.update_variable_value(a, 4))
        self.assertAlmostEqual(c.variable_value, 20)
        line = self.nomogram.index_line
        self.assertTrue(collinear(line.start_point, c.value_point(Space.TOP_VIEW), line.end_point))

    def test_solution_on_range_bound(self):
        a, b, c = (self.nomogram.scale_named(name) for name in 'ABC')
        self.assertTrue(self.nomogram.update_variable_value(b, 5))
        self.nomogram.set_fixed(b)
        self.assertTrue(self.nomogram.update_variable_value(a, 2))
        self.assertEqual(c.variable_value, c.start_value)
        self.assertAlmostEqual(c.variable_value, 10)

    def test_invalid_definitions(self):
        definition = dict(Nomograms.Multiplication, input1={'name': 'A', 'range': [0, 10]})
        with self.assertRaises(ValueError):
            Nomogram.from_dict(definition)

    def test_exponents(self):
        bmi = make('BodyMassIndex')
        mass, height, index = (bmi.scale_for(eq) for eq in VariableEquation)
        bmi.set_fixed(height)
        self.assertTrue(bmi.update_variable_value(mass, 60))
        self.assertAlmostEqual(index.variable_value, 60 / height.variable_value ** 2)
        self.assertEqual(bmi.equation_label(), 'BMI = Mass/Height²')
        self.assertEqual(Nomograms.make('Multiplication').equation_label(), 'C = A⋅B')


class SecondDegreeTestCase(unittest.TestCase):
    def setUp(self):
        self.nomogram = make('SecondDegree')
        self.c, self.x, self.b = self.nomogram.scales

    def test_layout(self):
        self.assertIsInstance(self.x, CurvedScale)
        self.assertEqual((self.c.variable_value, self.b.variable_value), (-5, 5))
        self.assertAlmostEqual(self.x.variable_value, (-5 - math.sqrt(45)) / 2)
        self.assertEqual(self.x.start_value, 0)
        self.assertAlmostEqual(self.x.end_value, (-10 - math.sqrt(140)) / 2)
        self.assertTrue(self.x.fixed)
        self.assertEqual(self.nomogram.equation_label(), 'X² + BX + C = 0')

    def test_update_solves_unfixed(self):
        self.nomogram.set_fixed(self.b)
        self.assertTrue(self.nomogram.update_variable_value(self.c, -6))
        self.assertAlmostEqual(self.x.variable_value, -6)
        self.assertIsNotNone(self.x.value_point(Space.TOP_VIEW))
        self.assertEqual(self.nomogram.index_line.start_point, self.c.value_point(Space.TOP_VIEW))
        self.assertEqual(self.nomogram.index_line.end_point, self.b.value_point(Space.TOP_VIEW))

    def test_range_edits(self):
        self.assertFalse(self.nomogram.update_range(self.c, upper_range=-61))
        self.assertFalse(self.nomogram.update_range(self.c, lower_range=-1))
        self.assertFalse(self.nomogram.update_range(self.x, upper_range=-20))
        self.assertFalse(self.nomogram.update_range(self.c, upper_range=5))
        self.assertFalse(self.nomogram.update_range(self.b, upper_range=-5))
        self.assertTrue(self.nomogram.update_range(self.c, upper_range=-30))
        self.assertEqual(self.nomogram.initializers[VariableEquation.INPUT2].range, (0, 30))
        self.assertEqual(self.nomogram.scale_named('B').end_value, 30)

    def test_projection_on_curve(self):
        self.nomogram.set_fixed(self.b)
        b_point = self.b.value_point(Space.TOP_VIEW)
        c_point = self.c.get_point(-3, Space.TOP_VIEW)
        finger = ((b_point[0] + c_point[0]) / 2, (b_point[1] + c_point[1]) / 2)
        self.assertAlmostEqual(self.x.compute_variable_value_from_projection(finger, Space.TOP_VIEW), -3)

    def test_bezier_end_search(self):
        for k in (1, 10, 60):
            nomogram = Nomogram.from_dict({'name': f'K{k}', 'operation': 'second_degree',
                                           'input1': {'name': 'C', 'range': [0, -k]},
                                           'input2': {'name': 'B', 'range': [0, k]},
                                           'output': {'name': 'X'}})
            nomogram.init_scales()
            x = nomogram.scale_for(VariableEquation.OUTPUT)
            self.assertLess(x.bezier_iterations, 100)
            end_x, end_y = x.end_point.top_view
            self.assertAlmostEqual(end_y, 100, delta=CurvedScale.threshold)
            expected = (-k + math.sqrt(k * k + 4 * k)) / 2
            self.assertAlmostEqual((end_x - 100) / 700, expected, delta=0.02)

    def test_chord_slope_example(self):
        nomogram = Nomogram.from_example('Quadratic')
        self.assertEqual(nomogram.bezier_slope, BezierSlope.CHORD)
        nomogram.init_scales()
        self.assertIsInstance(nomogram.scale_for(VariableEquation.OUTPUT), CurvedScale)

    def test_slopes_give_different_control_points(self):
        curves = []
        for slope in BezierSlope:
            nomogram = Nomogram.from_dict({'name': 'Quadratic', 'operation': 'second_degree',
                                           'bezier_slope': slope.value,
                                           'input1': {'name': 'C', 'range': [0, -10]},
                                           'input2': {'name': 'B', 'range': [0, 10]},
                                           'output': {'name': 'X'}})
            nomogram.init_scales()
            curves.append(nomogram.scale_for(VariableEquation.OUTPUT))
        legacy, chord = curves
        self.assertEqual(legacy.start_point.top_view, chord.start_point.top_view)
        self.assertNotEqual([p.top_view for p in legacy.control_points],
                            [p.top_view for p in chord.control_points])

    def test_value_off_the_curve(self):
        self.assertIsNone(self.x.get_point(-50, Space.TOP_VIEW))

    def test_iteration_cap_keeps_best_candidate(self):
        with patch.object(CurvedScale, 'max_iterations', 1), self.assertLogs('Nomography', 'WARNING') as logs:
            self.x.compute_bezier_points()
        self.assertEqual(self.x.bezier_iterations, 1)
        self.assertEqual(self.x.end_point.top_view, self.x.curve_point(CurvedScale.x_end_initial))
        self.assertIn('Bézier', logs.output[0])

    def test_iteration_cap_without_crossing(self):
        with patch.object(CurvedScale, 'max_iterations', 3), patch('Nomography.intersect_line_bezier', return_value=None), \
                self.assertLogs('Nomography', 'WARNING') as logs:
            self.x.compute_bezier_points()
        self.assertEqual(self.x.end_point.top_view, self.x.curve_point(CurvedScale.x_end_initial))
        self.assertIn('never reached', logs.output[0])


class GestureTestCase(unittest.TestCase):
    def setUp(self):
        self.nomogram = make('Addition')
        self.a, self.c, self.b = self.nomogram.scales

    def test_drag_value(self):
        self.assertTrue(self.nomogram.pan_top_view((0, -35), (100, 415)))
        self.assertAlmostEqual(self.a.variable_value, 2.75)
        self.assertAlmostEqual(self.b.variable_value, 4.75)
        self.assertTrue(self.nomogram.pan_top_view((0, -35), (100, 380)))
        self.assertAlmostEqual(self.a.variable_value, 3.0)
        self.assertAlmostEqual(self.b.variable_value, 4.5)
        self.nomogram.release()
        self.assertEqual(self.nomogram.dragging, set())

    def test_pan(self):
        index_start = self.nomogram.index_line.start_point
        self.assertFalse(self.nomogram.pan_top_view((10, 0), (450, 850)))
        self.assertEqual(self.a.start_point.top_view, (110, 800))
        self.assertEqual(self.nomogram.index_line.start_point, (index_start[0] + 10, index_start[1]))
        self.assertEqual(self.a.variable_value, 2.5)

    def test_zoom(self):
        self.nomogram.zoom_top_view(2, (450, 450))
        self.assertEqual(self.a.start_point.top_view, (-250, 1150))
        self.assertEqual(self.a.zoom[Space.TOP_VIEW], 2)
        self.assertEqual(self.nomogram.index_line.start_point, self.a.value_point(Space.TOP_VIEW))

    def test_long_press(self):
        self.assertFalse(self.nomogram.long_press((0, 0)))
        self.assertTrue(self.nomogram.long_press(self.a.value_point(Space.TOP_VIEW)))
        self.assertTrue(self.a.fixed)
        self.assertFalse(self.c.fixed or self.b.fixed)

    def test_detail(self):
        self.a.recenter_zoomed()
        self.assertEqual(self.a.value_point(Space.ZOOMED_VIEW), (450, 150))
        self.assertTrue(self.nomogram.drag_detail(self.a, (450, 115)))
        self.assertAlmostEqual(self.a.variable_value, 2.75)
        self.assertAlmostEqual(self.b.variable_value, 4.75)
        self.assertFalse(self.nomogram.drag_detail(self.c, (450, 150)))
        self.nomogram.zoom_detail(self.a, 2)
        self.assertEqual(self.a.zoom[Space.ZOOMED_VIEW], 2)

    def test_reset(self):
        self.nomogram.pan_top_view((10, 0), (450, 850))
        self.nomogram.set_fixed(self.a)
        self.nomogram.reset()
        a = self.nomogram.scale_named('A')
        self.assertEqual(a.start_point.top_view, (100, 800))
        self.assertTrue(self.nomogram.scale_named('C').fixed)


class LoadingTestCase(unittest.TestCase):
    def test_premade(self):
        self.assertEqual(Nomograms.names(),
                         ['Addition', 'Multiplication', 'SecondDegree', 'InductiveReactance', 'BodyMassIndex'])
        nomogram = Nomogram.load('InductiveReactance')
        self.assertEqual(nomogram.kind, 'premade')
        self.assertEqual(nomogram.operation, OperationType.MULTIPLICATION)
        self.assertEqual(nomogram.equation_label(), 'X = 2π⋅f⋅L')

    def test_premade_are_fresh(self):
        first = Nomograms.make('Addition')
        first.initializers[VariableEquation.INPUT1].range = (0, 50)
        self.assertEqual(Nomograms.make('Addition').initializers[VariableEquation.INPUT1].range, (0, 5))

    def test_examples(self):
        self.assertEqual(set(Nomogram.example_names()), {'OhmsLaw', 'Quadratic', 'SeriesResistance'})
        nomogram = Nomogram.load('SeriesResistance')
        self.assertEqual(nomogram.kind, 'custom')
        nomogram.init_scales()
        self.assertEqual(nomogram.scale_named('R1').label, 'R1 (Ω)')

    def test_invalid(self):
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.Addition, colour='red'))
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.Addition, input1={'name': 'A'}))
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.Addition, operation='division'))
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.Addition, input1={'name': 'A', 'rnage': [0, 5]}))
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.Addition, geometry={'widht': 1200}))
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.Addition, style={'colour': 'blue'}))
        with self.assertRaises(ValueError):
            Nomogram.from_dict(dict(Nomograms.SecondDegree, input1={'name': 'C', 'range': [0, -80]},
                                    input2={'name': 'B', 'range': [0, 80]}))


class RenderTestCase(unittest.TestCase):
    def test_render_png(self):
        img = render_nomogram_mode(make('Addition'), OutFormat.PNG)
        self.assertIsInstance(img, Image.Image)
        self.assertEqual(img.size, (900, 900))

    def test_render_svg(self):
        drawing = render_nomogram_mode(make('SecondDegree'), OutFormat.SVG)
        self.assertIsInstance(drawing, svg.Drawing)
        self.assertIn('<path', drawing.as_svg())

    def test_render_detail(self):
        nomogram = make('SecondDegree')
        x = nomogram.scale_for(VariableEquation.OUTPUT)
        img = render_detail_mode(nomogram, x, OutFormat.PNG)
        self.assertEqual(img.size, (900, 300))
        self.assertTrue(x.graduations[Space.ZOOMED_VIEW].first_order.graduations)


class CommandsTestCase(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(parse_assignment('A=2.5'), ('A', 2.5))
        self.assertEqual(parse_range('C=:-30'), ('C', None, -30))
        self.assertEqual(parse_range('A=1:'), ('A', 1, None))
        with self.assertRaises(ValueError):
            parse_range('A=1')

    def test_main(self):
        argv = ['Nomography.py', '--nomogram', 'Addition', '--fix', 'B', '--set', 'A=2', '--detail', 'C']
        with patch('sys.argv', argv), patch.object(Nomography, 'save_image') as mock_save:
            Nomography.main()
        names = [call.args[1] for call in mock_save.call_args_list]
        self.assertEqual(names, ['Addition.Nomogram', 'Addition.C.Detail'])

    def test_main_rejects(self):
        argv = ['Nomography.py', '--nomogram', 'Addition', '--set', 'A=7']
        with patch('sys.argv', argv), patch.object(Nomography, 'save_image'):
            with self.assertRaises(SystemExit):
                Nomography.main()


if __name__ == '__main__':
    unittest.main()
