#!/usr/bin/env python3
"""
Legged Odometry Demo

Runs the legged odometry on a simulated biped walking forward:
- alternating double and single support phases
- stance feet stay still on the ground, legs follow from planar inverse
  kinematics
- foot force sensors share the weight of the robot between stance feet

Prints the estimated floating base pose against the simulated one, the
contact events and the anchor frame changes.
"""

import argparse
import logging
from pathlib import Path
import sys

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from legged_odometry.estimation import (
    LeggedOdometryEstimator,
    OdometryConfig,
    KinematicContactFilter
)
from legged_odometry.utils import Kinematics, create_simple_biped_model

LEG_LENGTH = 0.4
ANKLE_HEIGHT = 0.1


def leg_inverse_kinematics(hip: np.ndarray, ankle: np.ndarray) -> tuple:
    """
    Planar inverse kinematics of a leg with two equal links

    Args:
        hip: Hip position (x, z) in the pelvis-aligned frame
        ankle: Ankle position (x, z)

    Returns:
        (hip_pitch, knee, ankle_pitch), with the foot kept flat
    """
    dx, dz = ankle - hip
    reach = min(np.hypot(dx, dz), 2 * LEG_LENGTH - 1e-6)
    knee = 2 * np.arccos(reach / (2 * LEG_LENGTH))
    leg_direction = np.arctan2(-dx, -dz)
    hip_pitch = leg_direction - knee / 2
    return hip_pitch, knee, -(hip_pitch + knee)


class WalkingBiped:
    """Kinematic walk of the simple biped along the x axis"""

    def __init__(self, speed: float, pelvis_height: float, double_support: float,
                 single_support: float, swing_height: float = 0.05):
        self.speed = speed
        self.pelvis_height = pelvis_height
        self.double_support = double_support
        self.single_support = single_support
        self.swing_height = swing_height
        self.step_length = speed * (double_support + single_support)

    def state(self, t: float, weight: float):
        """
        Base pose, joint positions and foot wrenches at time t

        The left foot swings first.
        """
        period = self.double_support + self.single_support
        step = int(t // period)
        phase = t - step * period
        base_x = self.speed * t

        swing_side = 'left' if step % 2 == 0 else 'right'
        stance_side = 'right' if swing_side == 'left' else 'left'

        feet = {}
        wrenches = {}
        if phase < self.double_support:
            for side in ('left', 'right'):
                feet[side] = (self._planted(side, step), 0.0)
                wrenches[side] = weight / 2
        else:
            s = (phase - self.double_support) / self.single_support
            start = self._planted(swing_side, step)
            end = start + 2 * self.step_length if step > 0 else start + self.step_length
            feet[swing_side] = (start + s * (end - start), self.swing_height * np.sin(np.pi * s))
            feet[stance_side] = (self._planted(stance_side, step), 0.0)
            wrenches[swing_side] = 0.0
            wrenches[stance_side] = weight

        hip = np.array([base_x, self.pelvis_height])
        joints = {}
        for side, (x, z) in feet.items():
            hip_pitch, knee, ankle_pitch = leg_inverse_kinematics(
                hip, np.array([x, z + ANKLE_HEIGHT])
            )
            joints[f'{side}_hip_pitch'] = hip_pitch
            joints[f'{side}_knee'] = knee
            joints[f'{side}_ankle_pitch'] = ankle_pitch

        base_pose = Kinematics(position=[base_x, 0.0, self.pelvis_height])
        forces = {
            'LeftFootForceSensor': [0.0, 0.0, wrenches['left']],
            'RightFootForceSensor': [0.0, 0.0, wrenches['right']],
        }
        return base_pose, joints, forces

    def _planted(self, side: str, step: int) -> float:
        """Planted x of a foot during the given step"""
        if side == 'left':
            steps_done = (step + 1) // 2
            return 0.0 if steps_done == 0 else self.step_length + 2 * self.step_length * (steps_done - 1)
        steps_done = step // 2
        return 2 * self.step_length * steps_done


def main():
    """Run the odometry along a simulated walk"""
    parser = argparse.ArgumentParser(description='Legged Odometry Demo')
    parser.add_argument('--config', type=str,
                        default=str(Path(__file__).parent.parent / 'config' / 'legged_odometry.yaml'),
                        help='Odometry configuration file')
    parser.add_argument('--steps', type=int, default=400, help='Number of control cycles')
    parser.add_argument('--speed', type=float, default=0.1, help='Forward velocity (m/s)')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print("=" * 60)
    print("Legged Odometry Demo")
    print("=" * 60)

    config_path = Path(args.config)
    if config_path.exists():
        config = OdometryConfig.from_yaml(str(config_path))
        print(f"Loaded configuration: {config_path}")
    else:
        print(f"Config not found: {config_path}, using defaults")
        config = OdometryConfig(anchor_body_sensor='Accelerometer')

    robot = create_simple_biped_model()
    walk = WalkingBiped(speed=args.speed, pelvis_height=0.85,
                        double_support=0.2, single_support=0.4)

    events = {'set': 0, 'removed': 0, 'anchor_changes': 0}

    def on_new_contact(contact):
        events['set'] += 1

    def on_removed_contact(contact):
        events['removed'] += 1

    base_pose, joints, forces = walk.state(0.0, robot.mass * config.gravity)
    robot.update_state(base_pose=base_pose, joint_positions=joints, wrenches=forces)

    estimator = LeggedOdometryEstimator(
        config,
        robot,
        contact_filter=KinematicContactFilter(),
        on_new_contact=on_new_contact,
        on_removed_contact=on_removed_contact
    )

    print(f"\nOdometry: {config.odometry_type.value}, detection: {config.contacts_detection.value}")
    print(f"Cycles: {args.steps}, dt: {config.dt:.3f} s, speed: {args.speed:.2f} m/s")
    print("\n" + "-" * 60)

    print_interval = max(args.steps // 10, 1)
    result = None
    for step in range(args.steps):
        t = step * config.dt
        base_pose, joints, forces = walk.state(t, robot.mass * config.gravity)
        robot.update_state(base_pose=base_pose, joint_positions=joints, wrenches=forces)

        result = estimator.run(tilt=base_pose.orientation)
        if result.anchor_frame_method_changed:
            events['anchor_changes'] += 1

        if step % print_interval == 0:
            est = result.pose.position
            print(f"Time: {t:6.3f}s | "
                  f"Est: [{est[0]:6.3f}, {est[1]:6.3f}, {est[2]:6.3f}] | "
                  f"True: [{base_pose.position[0]:6.3f}, {base_pose.position[1]:6.3f}, "
                  f"{base_pose.position[2]:6.3f}] | "
                  f"Contacts: {estimator.detector.to_string(result.contacts_found)}")

    error = np.linalg.norm(result.pose.position - robot.state.base_pose.position)

    print("\n" + "=" * 60)
    print("Odometry Complete")
    print("=" * 60)
    print(f"Final estimate: {result.pose}")
    print(f"Final truth:    {robot.state.base_pose}")
    print(f"Position error: {error * 1000:.2f} mm")
    print(f"Contacts set: {events['set']}, removed: {events['removed']}")
    print(f"Anchor frame source changes: {events['anchor_changes']}")
    if result.velocity is not None:
        print(f"Final velocity: {np.array2string(result.velocity, precision=3)}")


if __name__ == "__main__":
    main()
