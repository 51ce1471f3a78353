#!/usr/bin/env python3
"""
Robot Model
Kinematic tree, pure forward kinematics and the per-cycle robot state
(floating base, encoders and force sensor readings)
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Optional, List, Mapping, Sequence, Union
import yaml

from .kinematics import Kinematics
from .math_utils import axis_angle_to_rotation_matrix
from ..exceptions import ConfigurationError, ConsistencyError, NotFoundError

JOINT_TYPES = ('fixed', 'revolute', 'prismatic')


@dataclass
class Body:
    """Rigid body attached to its parent through a single joint"""
    name: str
    parent: Optional[str]          # None for the root body
    placement: Kinematics          # joint frame in the parent body frame
    joint: Optional[str] = None
    joint_type: str = 'fixed'
    axis: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))

    def joint_motion(self, q: float) -> Kinematics:
        """Transform added by the joint for the joint value q"""
        if self.joint_type == 'revolute':
            return Kinematics(orientation=axis_angle_to_rotation_matrix(self.axis, q))
        if self.joint_type == 'prismatic':
            axis = self.axis / np.linalg.norm(self.axis)
            return Kinematics(position=axis * q)
        return Kinematics.identity()


@dataclass
class ForceSensor:
    """6-axis force sensor rigidly attached to a body"""
    name: str
    parent_body: str
    placement: Kinematics          # X_p_f: sensor frame in the parent body frame
    mass: float = 0.0              # mass hanging below the sensor (gravity compensation)
    com: np.ndarray = field(default_factory=lambda: np.zeros(3))  # in the sensor frame


@dataclass
class Surface:
    """Contact surface; its z axis is the contact normal"""
    name: str
    parent_body: str
    placement: Kinematics


@dataclass
class BodySensor:
    """IMU-like sensor attached to a body"""
    name: str
    parent_body: str
    placement: Kinematics


def _placement_from_dict(cfg: Mapping) -> Kinematics:
    """Placement from {'position': [...], 'quaternion': [w, x, y, z]}"""
    position = cfg.get('position', [0.0, 0.0, 0.0])
    if 'quaternion' in cfg:
        return Kinematics.from_quaternion(np.array(cfg['quaternion'], dtype=float), position)
    return Kinematics(position=position)


class KinematicTree:
    """
    Kinematic description of a floating-base robot

    Bodies must be added parent first, so that iterating over them in
    insertion order always visits a parent before its children.
    """

    def __init__(self, root: str = 'base_link'):
        self.root = root
        self.bodies: Dict[str, Body] = {
            root: Body(name=root, parent=None, placement=Kinematics.identity())
        }
        self.force_sensors: Dict[str, ForceSensor] = {}
        self.surfaces: Dict[str, Surface] = {}
        self.body_sensors: Dict[str, BodySensor] = {}

    def add_body(
        self,
        name: str,
        parent: str,
        placement: Optional[Kinematics] = None,
        joint: Optional[str] = None,
        joint_type: str = 'fixed',
        axis: Optional[Sequence[float]] = None
    ) -> Body:
        """
        Add a body to the tree

        Args:
            name: Body name
            parent: Name of an existing body
            placement: Joint frame in the parent body frame
            joint: Joint name, required for revolute and prismatic joints
            joint_type: 'fixed', 'revolute' or 'prismatic'
            axis: Joint axis in the joint frame

        Returns:
            The new body
        """
        if name in self.bodies:
            raise ConsistencyError(f"Body '{name}' already exists")
        self._require_body(parent)
        if joint_type not in JOINT_TYPES:
            raise ConfigurationError(
                f"Unknown joint type '{joint_type}' for body '{name}'. "
                f"Please pick among: {list(JOINT_TYPES)}"
            )
        if joint_type != 'fixed' and not joint:
            raise ConfigurationError(f"Body '{name}' has a {joint_type} joint without a name")
        if joint and joint in self.joint_names:
            raise ConsistencyError(f"Joint '{joint}' already exists")

        body = Body(
            name=name,
            parent=parent,
            placement=placement.copy() if placement is not None else Kinematics.identity(),
            joint=joint if joint_type != 'fixed' else None,
            joint_type=joint_type,
            axis=np.array(axis if axis is not None else [0.0, 0.0, 1.0], dtype=float)
        )
        self.bodies[name] = body
        return body

    def add_force_sensor(
        self,
        name: str,
        parent_body: str,
        placement: Optional[Kinematics] = None,
        mass: float = 0.0
    ) -> ForceSensor:
        self._require_body(parent_body)
        self._require_new_frame(name)
        sensor = ForceSensor(
            name=name,
            parent_body=parent_body,
            placement=placement.copy() if placement is not None else Kinematics.identity(),
            mass=mass
        )
        self.force_sensors[name] = sensor
        return sensor

    def add_surface(
        self,
        name: str,
        parent_body: str,
        placement: Optional[Kinematics] = None
    ) -> Surface:
        self._require_body(parent_body)
        self._require_new_frame(name)
        surface = Surface(
            name=name,
            parent_body=parent_body,
            placement=placement.copy() if placement is not None else Kinematics.identity()
        )
        self.surfaces[name] = surface
        return surface

    def add_body_sensor(
        self,
        name: str,
        parent_body: str,
        placement: Optional[Kinematics] = None
    ) -> BodySensor:
        self._require_body(parent_body)
        self._require_new_frame(name)
        sensor = BodySensor(
            name=name,
            parent_body=parent_body,
            placement=placement.copy() if placement is not None else Kinematics.identity()
        )
        self.body_sensors[name] = sensor
        return sensor

    @property
    def joint_names(self) -> List[str]:
        """Actuated joints, parent first"""
        return [body.joint for body in self.bodies.values() if body.joint is not None]

    def ancestors(self, body_name: str) -> List[str]:
        """The body itself followed by its ancestors up to the root"""
        self._require_body(body_name)
        chain = []
        current: Optional[str] = body_name
        while current is not None:
            chain.append(current)
            current = self.bodies[current].parent
        return chain

    def frame(self, name: str) -> Union[Body, ForceSensor, Surface, BodySensor]:
        """Body, surface, force sensor or body sensor with the given name"""
        for table in (self.bodies, self.surfaces, self.force_sensors, self.body_sensors):
            if name in table:
                return table[name]
        raise NotFoundError(f"No body, surface or sensor named '{name}'")

    def surface_force_sensor(self, surface_name: str) -> ForceSensor:
        """
        Force sensor measuring the wrench applied on a surface

        The sensor is the one attached to the closest body between the
        surface's body and the root.
        """
        surface = self.surface(surface_name)
        for body_name in self.ancestors(surface.parent_body):
            for sensor in self.force_sensors.values():
                if sensor.parent_body == body_name:
                    return sensor
        raise NotFoundError(f"No force sensor measures the wrench on surface '{surface_name}'")

    def surface_has_force_sensor(self, surface_name: str) -> bool:
        try:
            self.surface_force_sensor(surface_name)
        except NotFoundError:
            return False
        return True

    def surface_has_direct_force_sensor(self, surface_name: str) -> bool:
        """True if the surface and its force sensor share the same body"""
        surface = self.surface(surface_name)
        return any(s.parent_body == surface.parent_body for s in self.force_sensors.values())

    def surface(self, name: str) -> Surface:
        if name not in self.surfaces:
            raise NotFoundError(f"No surface named '{name}'")
        return self.surfaces[name]

    def force_sensor(self, name: str) -> ForceSensor:
        if name not in self.force_sensors:
            raise NotFoundError(f"No force sensor named '{name}'")
        return self.force_sensors[name]

    def body_sensor(self, name: str) -> BodySensor:
        if name not in self.body_sensors:
            raise NotFoundError(f"No body sensor named '{name}'")
        return self.body_sensors[name]

    def _require_body(self, name: str):
        if name not in self.bodies:
            raise NotFoundError(f"No body named '{name}'")

    def _require_new_frame(self, name: str):
        if name in self.bodies or name in self.surfaces \
                or name in self.force_sensors or name in self.body_sensors:
            raise ConsistencyError(f"A frame named '{name}' already exists")

    @classmethod
    def from_dict(cls, cfg: Mapping) -> 'KinematicTree':
        """
        Build a tree from a configuration dictionary

        Expected keys: 'root', 'bodies', 'force_sensors', 'surfaces' and
        'body_sensors'; each element carries 'name', 'parent' and an
        optional 'position' / 'quaternion' placement.
        """
        tree = cls(root=cfg.get('root', 'base_link'))
        for body in cfg.get('bodies', []):
            tree.add_body(
                name=body['name'],
                parent=body['parent'],
                placement=_placement_from_dict(body),
                joint=body.get('joint'),
                joint_type=body.get('type', 'fixed'),
                axis=body.get('axis')
            )
        for sensor in cfg.get('force_sensors', []):
            tree.add_force_sensor(
                sensor['name'], sensor['parent'], _placement_from_dict(sensor),
                mass=sensor.get('mass', 0.0)
            )
        for surface in cfg.get('surfaces', []):
            tree.add_surface(surface['name'], surface['parent'], _placement_from_dict(surface))
        for sensor in cfg.get('body_sensors', []):
            tree.add_body_sensor(sensor['name'], sensor['parent'], _placement_from_dict(sensor))
        return tree


def _joint_value(
    joint_positions: Union[Mapping[str, float], Sequence[float], np.ndarray],
    joint: str,
    index: int
) -> float:
    if isinstance(joint_positions, Mapping):
        if joint not in joint_positions:
            raise NotFoundError(f"No position given for joint '{joint}'")
        return float(joint_positions[joint])
    if index >= len(joint_positions):
        raise NotFoundError(f"No position given for joint '{joint}' (index {index})")
    return float(joint_positions[index])


def compose_kinematics(
    tree: KinematicTree,
    joint_positions: Union[Mapping[str, float], Sequence[float], np.ndarray],
    base_pose: Optional[Kinematics] = None
) -> Dict[str, Kinematics]:
    """
    Forward kinematics of all the bodies of a tree

    Pure function: with base_pose left to None the floating base is pinned
    at the identity, the returned poses are then expressed in the floating
    base frame.

    Args:
        tree: Kinematic tree
        joint_positions: Joint values by name, or in tree.joint_names order
        base_pose: Pose of the root body in the world

    Returns:
        Dictionary body name -> pose of the body
    """
    base = base_pose.copy() if base_pose is not None else Kinematics.identity()
    table = {tree.root: base}
    joint_index = 0
    for body in tree.bodies.values():
        if body.parent is None:
            continue
        q = 0.0
        if body.joint is not None:
            q = _joint_value(joint_positions, body.joint, joint_index)
            joint_index += 1
        table[body.name] = table[body.parent] * body.placement * body.joint_motion(q)
    return table


def frame_kinematics(
    tree: KinematicTree,
    body_poses: Mapping[str, Kinematics],
    name: str
) -> Kinematics:
    """Pose of a body, surface or sensor from a table of body poses"""
    frame = tree.frame(name)
    if isinstance(frame, Body):
        return body_poses[frame.name].copy()
    return body_poses[frame.parent_body] * frame.placement


@dataclass
class RobotConfig:
    """Robot configuration parameters"""
    name: str = "robot"
    total_mass: float = 40.0
    gravity: float = 9.81


@dataclass
class RobotState:
    """Floating base pose, encoders and force sensor readings of one cycle"""
    base_pose: Kinematics = field(default_factory=Kinematics.identity)
    joint_positions: Dict[str, float] = field(default_factory=dict)
    wrenches: Dict[str, np.ndarray] = field(default_factory=dict)


class RobotModel:
    """
    Robot seen by the odometry

    Combines a kinematic tree with the current state of the robot and
    provides forward kinematics of any frame and the force sensor readings.
    """

    def __init__(
        self,
        tree: KinematicTree,
        config: Optional[RobotConfig] = None,
        state: Optional[RobotState] = None
    ):
        self.tree = tree
        self.config = config or RobotConfig()
        self.state = state or RobotState(
            joint_positions={joint: 0.0 for joint in tree.joint_names}
        )
        self._body_poses: Optional[Dict[str, Kinematics]] = None

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def mass(self) -> float:
        """Total robot mass"""
        return self.config.total_mass

    @property
    def joint_names(self) -> List[str]:
        return self.tree.joint_names

    @property
    def force_sensor_names(self) -> List[str]:
        return list(self.tree.force_sensors)

    @property
    def body_sensor_names(self) -> List[str]:
        return list(self.tree.body_sensors)

    def update_state(
        self,
        base_pose: Optional[Kinematics] = None,
        joint_positions: Optional[Mapping[str, float]] = None,
        wrenches: Optional[Mapping[str, np.ndarray]] = None
    ):
        """Update the robot state; omitted arguments keep their value"""
        if base_pose is not None:
            self.state.base_pose = base_pose.copy()
        if joint_positions is not None:
            self.state.joint_positions.update(joint_positions)
        if wrenches is not None:
            for sensor, wrench in wrenches.items():
                self.set_force_reading(sensor, wrench)
        self._body_poses = None

    def set_force_reading(self, sensor_name: str, wrench: Sequence[float]):
        """Set the raw [force, torque] measured by a force sensor"""
        self.tree.force_sensor(sensor_name)
        wrench = np.array(wrench, dtype=float).reshape(-1)
        if wrench.shape[0] == 3:
            wrench = np.concatenate([wrench, np.zeros(3)])
        self.state.wrenches[sensor_name] = wrench

    def joint_positions(self) -> Dict[str, float]:
        return dict(self.state.joint_positions)

    def body_poses(self) -> Dict[str, Kinematics]:
        """World poses of all bodies (cached until the next state update)"""
        if self._body_poses is None:
            self._body_poses = compose_kinematics(
                self.tree, self.state.joint_positions, self.state.base_pose
            )
        return self._body_poses

    def forward_kinematics_of(self, name: str) -> Kinematics:
        """World pose of a body, surface, force sensor or body sensor"""
        return frame_kinematics(self.tree, self.body_poses(), name)

    def force_sensor(self, name: str) -> ForceSensor:
        return self.tree.force_sensor(name)

    def force_sensor_reading(self, name: str) -> np.ndarray:
        """Raw 6D wrench [force, torque] in the sensor frame"""
        self.tree.force_sensor(name)
        return self.state.wrenches.get(name, np.zeros(6)).copy()

    def wrench_without_gravity(self, name: str) -> np.ndarray:
        """Wrench in the sensor frame with the weight of the hanging mass removed"""
        sensor = self.tree.force_sensor(name)
        wrench = self.force_sensor_reading(name)
        if sensor.mass == 0.0:
            return wrench
        world_sensor = self.forward_kinematics_of(name)
        gravity_force = world_sensor.orientation.T @ np.array(
            [0.0, 0.0, -sensor.mass * self.config.gravity]
        )
        wrench[:3] -= gravity_force
        wrench[3:] -= np.cross(sensor.com, gravity_force)
        return wrench

    def has_surface(self, name: str) -> bool:
        return name in self.tree.surfaces

    def has_body_sensor(self, name: str) -> bool:
        return name in self.tree.body_sensors

    def surface_force_sensor(self, surface_name: str) -> str:
        return self.tree.surface_force_sensor(surface_name).name

    def surface_has_force_sensor(self, surface_name: str) -> bool:
        return self.tree.surface_has_force_sensor(surface_name)

    def surface_has_direct_force_sensor(self, surface_name: str) -> bool:
        return self.tree.surface_has_direct_force_sensor(surface_name)

    @classmethod
    def from_dict(cls, cfg: Mapping) -> 'RobotModel':
        robot_cfg = cfg.get('robot', {})
        config = RobotConfig(
            name=robot_cfg.get('name', 'robot'),
            total_mass=robot_cfg.get('total_mass', 40.0),
            gravity=robot_cfg.get('gravity', 9.81)
        )
        tree = KinematicTree.from_dict(cfg.get('kinematics', {}))
        model = cls(tree, config)

        initial = cfg.get('initial_state', {})
        model.update_state(
            base_pose=_placement_from_dict(initial.get('base', {})),
            joint_positions=initial.get('joint_positions', {})
        )
        return model

    @classmethod
    def from_yaml(cls, filepath: str) -> 'RobotModel':
        """Load robot description from YAML"""
        with open(filepath, 'r') as f:
            cfg = yaml.safe_load(f)
        return cls.from_dict(cfg)


def create_simple_biped_model(
    mass: float = 40.0,
    standing_height: float = 0.9
) -> RobotModel:
    """
    Create a small biped for testing without a description file

    Legs have hip yaw, hip pitch, knee and ankle joints. The left foot
    carries an extra toe body whose surface is measured by the ankle force
    sensor (surface not attached to the sensor). The left arm carries a
    hand force sensor and surface.

    Args:
        mass: Total robot mass
        standing_height: Height of the pelvis when the soles are at z = 0

    Returns:
        RobotModel instance standing with zero joint angles
    """
    tree = KinematicTree(root='pelvis')
    thigh = (standing_height - 0.1) / 2.0

    for side, sign in (('left', 1.0), ('right', -1.0)):
        prefix = side.capitalize()
        tree.add_body(f'{side}_hip_yaw_link', 'pelvis',
                      Kinematics(position=[0.0, sign * 0.1, 0.0]),
                      joint=f'{side}_hip_yaw', joint_type='revolute', axis=[0, 0, 1])
        tree.add_body(f'{side}_thigh', f'{side}_hip_yaw_link',
                      joint=f'{side}_hip_pitch', joint_type='revolute', axis=[0, 1, 0])
        tree.add_body(f'{side}_shin', f'{side}_thigh',
                      Kinematics(position=[0.0, 0.0, -thigh]),
                      joint=f'{side}_knee', joint_type='revolute', axis=[0, 1, 0])
        tree.add_body(f'{side}_ankle', f'{side}_shin',
                      Kinematics(position=[0.0, 0.0, -thigh]),
                      joint=f'{side}_ankle_pitch', joint_type='revolute', axis=[0, 1, 0])
        tree.add_force_sensor(f'{prefix}FootForceSensor', f'{side}_ankle',
                              Kinematics(position=[0.0, 0.0, -0.05]))
        tree.add_surface(f'{prefix}Foot', f'{side}_ankle',
                         Kinematics(position=[0.0, 0.0, -0.1]))

    tree.add_body('left_toe', 'left_ankle', Kinematics(position=[0.1, 0.0, -0.1]),
                  joint='left_toe_pitch', joint_type='revolute', axis=[0, 1, 0])
    tree.add_surface('LeftToe', 'left_toe', Kinematics(position=[0.05, 0.0, 0.0]))

    tree.add_body('left_arm', 'pelvis', Kinematics(position=[0.0, 0.2, 0.3]),
                  joint='left_shoulder_pitch', joint_type='revolute', axis=[0, 1, 0])
    tree.add_force_sensor('LeftHandForceSensor', 'left_arm',
                          Kinematics(position=[0.0, 0.0, -0.5]))
    tree.add_surface('LeftHand', 'left_arm', Kinematics(position=[0.0, 0.0, -0.55]))

    tree.add_body_sensor('Accelerometer', 'pelvis', Kinematics(position=[0.0, 0.0, 0.05]))

    model = RobotModel(tree, RobotConfig(name='simple_biped', total_mass=mass))
    model.update_state(base_pose=Kinematics(position=[0.0, 0.0, standing_height]))
    return model
