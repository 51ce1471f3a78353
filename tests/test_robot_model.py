"""
Tests for the kinematic tree and the robot model.
Run with: pytest tests/ -v
"""

import numpy as np
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from legged_odometry.exceptions import ConfigurationError, ConsistencyError, NotFoundError
from legged_odometry.utils import (
    Kinematics,
    KinematicTree,
    RobotModel,
    compose_kinematics,
    frame_kinematics,
    rotation_matrix_z
)


class TestKinematicTree:
    """Test tree construction."""

    def test_unknown_parent(self):
        tree = KinematicTree(root='base')
        with pytest.raises(NotFoundError):
            tree.add_body('leg', 'hip')

    def test_duplicate_body(self):
        tree = KinematicTree(root='base')
        tree.add_body('leg', 'base', joint='knee', joint_type='revolute')
        with pytest.raises(ConsistencyError):
            tree.add_body('leg', 'base')

    def test_unknown_joint_type(self):
        tree = KinematicTree(root='base')
        with pytest.raises(ConfigurationError):
            tree.add_body('leg', 'base', joint='knee', joint_type='spherical')

    def test_actuated_joint_needs_name(self):
        tree = KinematicTree(root='base')
        with pytest.raises(ConfigurationError):
            tree.add_body('leg', 'base', joint_type='revolute')

    def test_joint_names_parent_first(self, biped):
        names = biped.joint_names
        assert names.index('left_hip_yaw') < names.index('left_knee') < names.index('left_toe_pitch')
        assert len(names) == 10

    def test_surface_force_sensor(self, biped):
        assert biped.surface_force_sensor('LeftFoot') == 'LeftFootForceSensor'
        assert biped.surface_force_sensor('LeftToe') == 'LeftFootForceSensor'
        assert biped.surface_force_sensor('LeftHand') == 'LeftHandForceSensor'

    def test_direct_force_sensor(self, biped):
        assert biped.surface_has_direct_force_sensor('LeftFoot')
        assert not biped.surface_has_direct_force_sensor('LeftToe')

    def test_surface_without_sensor(self, biped):
        biped.tree.add_surface('Back', 'pelvis', Kinematics(position=[-0.1, 0.0, 0.2]))
        assert not biped.surface_has_force_sensor('Back')
        with pytest.raises(NotFoundError):
            biped.surface_force_sensor('Back')


class TestForwardKinematics:
    """Test pure forward kinematics."""

    def test_zero_configuration(self, biped):
        poses = compose_kinematics(biped.tree, biped.joint_positions())
        np.testing.assert_allclose(poses['left_ankle'].position, [0.0, 0.1, -0.8])
        np.testing.assert_allclose(poses['pelvis'].position, np.zeros(3))

    def test_frames_in_base_frame(self, biped):
        poses = compose_kinematics(biped.tree, biped.joint_positions())
        sole = frame_kinematics(biped.tree, poses, 'LeftFoot')
        sensor = frame_kinematics(biped.tree, poses, 'LeftFootForceSensor')
        np.testing.assert_allclose(sole.position, [0.0, 0.1, -0.9])
        np.testing.assert_allclose(sensor.position, [0.0, 0.1, -0.85])

    def test_base_pose(self, biped):
        base = Kinematics(position=[1.0, 0.0, 0.9], orientation=rotation_matrix_z(np.pi / 2))
        poses = compose_kinematics(biped.tree, biped.joint_positions(), base)
        # left hip is along +y of the pelvis, i.e. along -x of the world
        np.testing.assert_allclose(poses['left_hip_yaw_link'].position, [0.9, 0.0, 0.9], atol=1e-12)

    def test_revolute_joint(self, biped):
        joints = biped.joint_positions()
        joints['left_hip_pitch'] = np.pi / 2
        poses = compose_kinematics(biped.tree, joints)
        # the ankle swings behind the hip
        np.testing.assert_allclose(poses['left_ankle'].position, [-0.8, 0.1, 0.0], atol=1e-12)

    def test_sequence_in_joint_order(self, biped):
        values = np.zeros(len(biped.joint_names))
        values[biped.joint_names.index('right_knee')] = 0.3
        by_name = dict(zip(biped.joint_names, values))
        from_sequence = compose_kinematics(biped.tree, values)
        from_mapping = compose_kinematics(biped.tree, by_name)
        assert from_sequence['right_ankle'].allclose(from_mapping['right_ankle'])

    def test_missing_joint(self, biped):
        joints = biped.joint_positions()
        del joints['left_knee']
        with pytest.raises(NotFoundError):
            compose_kinematics(biped.tree, joints)

    def test_pure(self, biped):
        joints = biped.joint_positions()
        first = compose_kinematics(biped.tree, joints)
        first['left_ankle'].position[0] = 10.0
        second = compose_kinematics(biped.tree, joints)
        np.testing.assert_allclose(second['left_ankle'].position, [0.0, 0.1, -0.8])


class TestRobotModel:
    """Test robot state and sensors."""

    def test_standing_soles_on_ground(self, biped):
        np.testing.assert_allclose(biped.forward_kinematics_of('LeftFoot').position, [0.0, 0.1, 0.0],
                                   atol=1e-12)
        np.testing.assert_allclose(biped.forward_kinematics_of('RightFoot').position[2], 0.0,
                                   atol=1e-12)

    def test_mass(self, biped):
        assert biped.mass == 40.0

    def test_state_update_invalidates_cache(self, biped):
        before = biped.forward_kinematics_of('LeftFoot')
        biped.update_state(base_pose=Kinematics(position=[0.0, 0.0, 1.0]))
        after = biped.forward_kinematics_of('LeftFoot')
        assert after.position[2] == pytest.approx(before.position[2] + 0.1)

    def test_force_reading(self, biped):
        np.testing.assert_allclose(biped.force_sensor_reading('LeftFootForceSensor'), np.zeros(6))
        biped.set_force_reading('LeftFootForceSensor', [1.0, 2.0, 3.0])
        np.testing.assert_allclose(biped.force_sensor_reading('LeftFootForceSensor'),
                                   [1.0, 2.0, 3.0, 0.0, 0.0, 0.0])

    def test_unknown_sensor(self, biped):
        with pytest.raises(NotFoundError):
            biped.force_sensor_reading('Nope')

    def test_wrench_without_gravity(self):
        tree = KinematicTree(root='base')
        tree.add_force_sensor('Sensor', 'base', mass=1.0)
        robot = RobotModel(tree)
        # hanging mass pulls the sensor down
        robot.set_force_reading('Sensor', [0.0, 0.0, -9.81, 0.0, 0.0, 0.0])
        np.testing.assert_allclose(robot.wrench_without_gravity('Sensor'), np.zeros(6), atol=1e-12)

    def test_from_yaml_matches_builder(self, biped, config_dir):
        robot = RobotModel.from_yaml(str(config_dir / 'biped_robot.yaml'))
        assert robot.name == 'simple_biped'
        assert robot.mass == 40.0
        assert robot.joint_names == biped.joint_names
        for name in ('LeftFoot', 'RightFoot', 'LeftToe', 'LeftHand',
                     'LeftFootForceSensor', 'Accelerometer'):
            assert robot.forward_kinematics_of(name).allclose(biped.forward_kinematics_of(name))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
