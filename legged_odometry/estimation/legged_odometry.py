#!/usr/bin/env python3
"""
Legged Odometry Estimator
Estimates the pose of the floating base by tracking the successive contacts
of the robot with its environment

The tilt cannot be estimated by this method (the yaw can): it is given by an
upstream estimator or kept from the previous estimate. With the flat
odometry the robot is assumed to walk on flat ground and the height of the
floating base follows the one of a reference robot, which removes the drift
along the vertical axis.
"""

import logging
import numpy as np
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional
import yaml

from .contact_filter import ContactFilter
from ..contacts.contact import Contact, ContactWithSensor
from ..contacts.detector import ContactDetector, DetectionMethod, detection_threshold
from ..contacts.orientation_selector import OrientationSelection, OrientationSelector
from ..contacts.registry import ContactRegistry
from ..exceptions import ConfigurationError, NotFoundError
from ..utils.kinematics import Kinematics
from ..utils.math_utils import (
    merge_tilt_with_yaw,
    weighted_rotation_average,
    rotation_difference_vector
)
from ..utils.parsing import enum_from_string
from ..utils.robot_model import RobotModel, compose_kinematics, frame_kinematics

logger = logging.getLogger(__name__)

ContactCallback = Callable[[Contact], None]


class OdometryType(Enum):
    """Flat odometry corrects the height of the base, 6D tracks all the DOFs"""
    FLAT = 'Flat'
    SIX_D = 'SixD'

    @classmethod
    def from_string(cls, value) -> 'OdometryType':
        return enum_from_string(cls, value, aliases={
            'flatOdometry': cls.FLAT,
            '6D': cls.SIX_D,
            'Odometry6d': cls.SIX_D,
            '6dOdometry': cls.SIX_D,
        }, what='odometry type')


class VelocityUpdate(Enum):
    """Method used to update the velocity of the floating base"""
    NO_UPDATE = 'NoUpdate'
    FINITE_DIFF = 'FiniteDiff'
    FROM_UPSTREAM = 'FromUpstream'

    @classmethod
    def from_string(cls, value) -> 'VelocityUpdate':
        return enum_from_string(cls, value, aliases={
            'FiniteDifference': cls.FINITE_DIFF,
        }, what='velocity update')


class AnchorPolicy(Enum):
    """Contact(s) defining the anchor frame when contacts are set"""
    HIGHEST_FORCE = 'HighestForce'
    FIRST_ACTIVE = 'FirstActive'
    FORCE_WEIGHTED = 'ForceWeighted'

    @classmethod
    def from_string(cls, value) -> 'AnchorPolicy':
        return enum_from_string(cls, value, what='anchor policy')


class OdometryStatus(Enum):
    IDLE = 'Idle'
    TRACKING = 'Tracking'


ALTITUDE_SOURCES = ('control', 'measured')


def _vector(value, size: int, name: str) -> np.ndarray:
    vec = np.array(value, dtype=float).reshape(-1)
    if vec.shape[0] == 1:
        vec = np.full(size, vec[0])
    if vec.shape[0] != size:
        raise ConfigurationError(f"'{name}' must have {size} elements, got {vec.shape[0]}")
    return vec


@dataclass
class OdometryConfig:
    """Legged odometry configuration"""
    robot_name: str = "robot"
    odometry_name: str = "LeggedOdometry"
    odometry_type: OdometryType = OdometryType.FLAT
    with_yaw_estimation: bool = True
    velocity_update: VelocityUpdate = VelocityUpdate.NO_UPDATE

    # New contacts' references from the odometry itself (True) or from the
    # control robot (False)
    with_odometry: bool = True
    # Robot whose altitude is followed by the flat odometry
    flat_altitude_source: str = "control"

    # Contacts detection
    contacts_detection: DetectionMethod = DetectionMethod.FROM_THRESHOLD
    surfaces_for_contact_detection: List[str] = field(default_factory=list)
    contacts_sensor_disabled_init: List[str] = field(default_factory=list)
    contact_detection_prop_threshold: float = 0.11
    hand_keywords: List[str] = field(default_factory=lambda: ['hand'])

    # Orientation odometry and anchor frame
    max_orientation_contacts: int = 2
    anchor_policy: AnchorPolicy = AnchorPolicy.HIGHEST_FORCE
    anchor_body_sensor: Optional[str] = None

    # Timing and physics
    dt: float = 0.005
    gravity: float = 9.81

    # Contacts given to the filter: [position, orientation, force, torque]
    contact_init_covariance_first: np.ndarray = None
    contact_init_covariance_new: np.ndarray = None
    contact_process_covariance: np.ndarray = None
    # [force, torque]
    contact_sensor_covariance: np.ndarray = None
    linear_stiffness: np.ndarray = None
    linear_damping: np.ndarray = None
    angular_stiffness: np.ndarray = None
    angular_damping: np.ndarray = None

    def __post_init__(self):
        self.odometry_type = OdometryType.from_string(self.odometry_type)
        self.velocity_update = VelocityUpdate.from_string(self.velocity_update)
        self.contacts_detection = DetectionMethod.from_string(self.contacts_detection)
        self.anchor_policy = AnchorPolicy.from_string(self.anchor_policy)

        if self.flat_altitude_source not in ALTITUDE_SOURCES:
            raise ConfigurationError(
                f"Unknown flat altitude source '{self.flat_altitude_source}'. "
                f"Please pick among: {list(ALTITUDE_SOURCES)}"
            )
        if self.contacts_detection == DetectionMethod.FROM_SURFACES \
                and not self.surfaces_for_contact_detection:
            raise ConfigurationError(
                "The contacts detection FromSurfaces requires surfaces_for_contact_detection"
            )
        if self.dt <= 0.0:
            raise ConfigurationError(f"The time step must be positive, got {self.dt}")
        if not 0.0 < self.contact_detection_prop_threshold <= 1.0:
            raise ConfigurationError(
                "contact_detection_prop_threshold must be in (0, 1], "
                f"got {self.contact_detection_prop_threshold}"
            )
        if self.max_orientation_contacts < 1:
            raise ConfigurationError("max_orientation_contacts must be at least 1")

        defaults = {
            'contact_init_covariance_first': [1e-8] * 3 + [1e-8] * 3 + [1e-2] * 3 + [1e-2] * 3,
            'contact_init_covariance_new': [1e-4] * 3 + [1e-4] * 3 + [1e-2] * 3 + [1e-2] * 3,
            'contact_process_covariance': [1e-8] * 3 + [1e-8] * 3 + [1e2] * 3 + [1e2] * 3,
            'contact_sensor_covariance': [1.0] * 3 + [1e-2] * 3,
            'linear_stiffness': [4e4, 4e4, 4e4],
            'linear_damping': [600.0, 600.0, 600.0],
            'angular_stiffness': [200.0, 200.0, 200.0],
            'angular_damping': [20.0, 20.0, 20.0],
        }
        for name, default in defaults.items():
            value = getattr(self, name)
            setattr(self, name, _vector(default if value is None else value, len(default), name))

    @property
    def stiffness(self) -> np.ndarray:
        """6D stiffness [linear, angular] of the visco-elastic contact model"""
        return np.concatenate([self.linear_stiffness, self.angular_stiffness])

    @property
    def damping(self) -> np.ndarray:
        return np.concatenate([self.linear_damping, self.angular_damping])

    @classmethod
    def from_dict(cls, cfg: Dict) -> 'OdometryConfig':
        """Create configuration from a dictionary, rejecting unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = set(cfg) - known
        if unknown:
            raise ConfigurationError(f"Unknown odometry configuration keys: {sorted(unknown)}")
        return cls(**cfg)

    @classmethod
    def from_yaml(cls, filepath: str) -> 'OdometryConfig':
        """Load configuration from the 'odometry' section of a YAML file"""
        with open(filepath, 'r') as f:
            cfg = yaml.safe_load(f) or {}
        return cls.from_dict(cfg.get('odometry', cfg))


@dataclass
class OdometryResult:
    """Output of one odometry cycle"""
    pose: Kinematics
    velocity: Optional[np.ndarray]          # [linear, angular] in the world
    acceleration: Optional[np.ndarray]
    contacts_found: FrozenSet[int]
    removed_contacts: FrozenSet[int]
    anchor_frame: Kinematics
    anchor_frame_method_changed: bool
    orientation_updated: bool
    status: OdometryStatus


class LeggedOdometryEstimator:
    """
    Legged odometry

    On each cycle:
    1. the joint configuration of the odometry robot is updated from the
       encoders, with the floating base at the identity
    2. contacts are detected
    3. new contacts get a reference pose in the world
    4. maintained contacts are updated and given to the filter
    5. removed contacts are removed from the filter
    6. the orientation of the floating base is estimated from the (at most
       two) most loaded contacts
    7. the position of the floating base is the force-weighted average of
       the positions given by every set contact
    8. the references of the contacts are corrected from the new pose
    9. the velocity is updated
    10. the anchor frame is computed
    """

    def __init__(
        self,
        config: OdometryConfig,
        robot: RobotModel,
        real_robot: Optional[RobotModel] = None,
        contact_filter: Optional[ContactFilter] = None,
        on_new_contact: Optional[ContactCallback] = None,
        on_maintained_contact: Optional[ContactCallback] = None,
        on_removed_contact: Optional[ContactCallback] = None,
        on_added_contact: Optional[ContactCallback] = None
    ):
        """
        Initialize legged odometry

        Args:
            config: Odometry configuration
            robot: Control-reference robot
            real_robot: Measured robot providing encoders and force sensors
                (defaults to robot)
            contact_filter: Estimation filter fed with the contacts (optional)
            on_new_contact: Called when a contact gets set
            on_maintained_contact: Called for every contact that stays set
            on_removed_contact: Called when a contact is removed
            on_added_contact: Called when a contact is added to the filter
        """
        self.config = config
        self.name = config.odometry_name
        self.robot = robot
        self.real_robot = real_robot or robot
        self.contact_filter = contact_filter

        self.on_new_contact = on_new_contact
        self.on_maintained_contact = on_maintained_contact
        self.on_removed_contact = on_removed_contact
        self.on_added_contact = on_added_contact

        self._anchor_body_sensor = config.anchor_body_sensor
        if self._anchor_body_sensor is None and self.real_robot.body_sensor_names:
            self._anchor_body_sensor = self.real_robot.body_sensor_names[0]
        if self._anchor_body_sensor is not None \
                and not self.real_robot.has_body_sensor(self._anchor_body_sensor):
            raise NotFoundError(f"[{self.name}]: no body sensor named '{self._anchor_body_sensor}'")

        threshold = detection_threshold(
            self.robot.mass, config.gravity, config.contact_detection_prop_threshold
        )
        self._detector = ContactDetector(
            self.real_robot,
            config.contacts_detection,
            threshold,
            surfaces=config.surfaces_for_contact_detection,
            sensors_disabled_init=config.contacts_sensor_disabled_init,
            hand_keywords=config.hand_keywords,
            name=self.name
        )
        self._odometry_type = config.odometry_type
        self._selector = OrientationSelector(config.max_orientation_contacts)

        self.reset()

        logger.info(
            "[%s]: %s odometry on robot %s, contacts detection %s (threshold %.2f N), velocity update %s",
            self.name, config.odometry_type.value, config.robot_name,
            config.contacts_detection.value, threshold, config.velocity_update.value
        )

    def reset(self, initial_pose: Optional[Kinematics] = None):
        """
        Restart the odometry from scratch

        Args:
            initial_pose: Initial floating base pose, defaults to the one of
                the control robot
        """
        if initial_pose is None:
            initial_pose = self.robot.forward_kinematics_of(self.robot.tree.root)
        self._fb_pose = initial_pose.copy()
        self._status = OdometryStatus.IDLE
        if self.contact_filter is not None:
            # the ids restart from 0 with the new registry
            for contact in self._detector.contacts():
                self.contact_filter.remove_contact(contact.id)
        self._detector.reset()

        # fails here if the encoders do not cover the tree
        self.update_joints_configuration()

        self._orientation_selection = OrientationSelection()
        self._velocity: Optional[np.ndarray] = None
        self._acceleration: Optional[np.ndarray] = None

        self._anchor_frame = self._fallback_anchor()
        self._prev_anchor_from_contacts: Optional[bool] = None
        self._curr_anchor_from_contacts = False
        self._anchor_frame_method_changed = False

    ###########################################################################
    # Accessors
    ###########################################################################

    @property
    def fb_pose(self) -> Kinematics:
        return self._fb_pose.copy()

    @property
    def velocity(self) -> Optional[np.ndarray]:
        return None if self._velocity is None else self._velocity.copy()

    @property
    def acceleration(self) -> Optional[np.ndarray]:
        return None if self._acceleration is None else self._acceleration.copy()

    @property
    def status(self) -> OdometryStatus:
        return self._status

    @property
    def detector(self) -> ContactDetector:
        return self._detector

    @property
    def registry(self) -> ContactRegistry:
        return self._detector.registry

    @property
    def anchor_frame(self) -> Kinematics:
        return self._anchor_frame.copy()

    @property
    def anchor_from_contacts(self) -> bool:
        return self._curr_anchor_from_contacts

    @property
    def anchor_frame_method_changed(self) -> bool:
        return self._anchor_frame_method_changed

    @property
    def orientation_contacts(self) -> OrientationSelection:
        return self._orientation_selection

    @property
    def odometry_type(self) -> OdometryType:
        return self._odometry_type

    def set_odometry_type(self, odometry_type):
        """Switch between flat and 6D odometry while running"""
        new_type = OdometryType.from_string(odometry_type)
        if new_type == self._odometry_type:
            return
        logger.info("[%s]: odometry mode changed to %s", self.name, new_type.value)
        self._odometry_type = new_type

    ###########################################################################
    # Cycle
    ###########################################################################

    def run(
        self,
        tilt: Optional[np.ndarray] = None,
        velocity: Optional[np.ndarray] = None,
        acceleration: Optional[np.ndarray] = None,
        solver_contacts: Optional[Iterable[str]] = None,
        upstream_orientation: Optional[np.ndarray] = None
    ) -> OdometryResult:
        """
        Run one odometry cycle

        Args:
            tilt: Orientation of the floating base whose tilt (roll and
                pitch) is trusted, given by an upstream estimator
            velocity: [linear, angular] velocity of the floating base; kept
                as is with NoUpdate, re-expressed with FromUpstream
            acceleration: [linear, angular] acceleration from upstream,
                re-expressed in the new floating base frame
            solver_contacts: Surfaces in contact, for FromSolver detection
            upstream_orientation: Orientation of the floating base in which
                velocity and acceleration are given (defaults to the one of
                the measured robot)

        Returns:
            OdometryResult of the cycle
        """
        return self._run(tilt, None, velocity, acceleration, solver_contacts, upstream_orientation)

    def run_with_full_attitude(
        self,
        attitude: np.ndarray,
        velocity: Optional[np.ndarray] = None,
        acceleration: Optional[np.ndarray] = None,
        solver_contacts: Optional[Iterable[str]] = None,
        upstream_orientation: Optional[np.ndarray] = None
    ) -> OdometryResult:
        """
        Run one cycle with the full attitude of the floating base given

        Only the position is estimated by the odometry; the attitude is used
        to correct the orientation of every contact.
        """
        attitude = np.array(attitude, dtype=float).reshape(3, 3)
        return self._run(None, attitude, velocity, acceleration, solver_contacts, upstream_orientation)

    def _run(self, tilt, attitude, velocity, acceleration, solver_contacts, upstream_orientation):
        previous_pose = self._fb_pose.copy()

        # 1. odometry robot
        self.update_joints_configuration()

        # 2. contacts detection
        found = self._detector.find_contacts(solver_contacts)
        removed = self._detector.removed_contacts
        if found and self._status == OdometryStatus.IDLE:
            self._status = OdometryStatus.TRACKING
            logger.info("[%s]: first contacts detected (%s), tracking started",
                        self.name, self._detector.to_string(found))

        # 3. and 4. new and maintained contacts
        for contact in self._detector.contacts(found):
            self._update_contact_kinematics(contact)
            if contact.was_already_set:
                self._call(self.on_maintained_contact, contact)
            else:
                self._set_new_contact(contact)
                self._call(self.on_new_contact, contact)
            self._update_filter_contact(contact)

        # 5. removed contacts
        for contact in self._detector.contacts(removed):
            if self.contact_filter is not None:
                self.contact_filter.remove_contact(contact.id)
            contact.reset_contact()
            self._call(self.on_removed_contact, contact)

        # 6. orientation
        if attitude is None:
            orientation_updated = self._update_orientation(found, tilt)
        else:
            self._orientation_selection = OrientationSelection()
            self._fb_pose.orientation = attitude.copy()
            orientation_updated = True

        # 7. position
        self._update_position(found)
        if self._odometry_type == OdometryType.FLAT:
            self._fb_pose.position[2] = self._altitude_robot().forward_kinematics_of(
                self._altitude_robot().tree.root
            ).position[2]

        # 8. contacts references
        self._correct_contacts_references(found, correct_all_orientations=attitude is not None)

        # 9. velocity and acceleration
        self._update_velocity(previous_pose, velocity, acceleration, upstream_orientation)

        # 10. anchor frame
        self._update_anchor_frame(found)

        return OdometryResult(
            pose=self.fb_pose,
            velocity=self.velocity,
            acceleration=self.acceleration,
            contacts_found=found,
            removed_contacts=removed,
            anchor_frame=self.anchor_frame,
            anchor_frame_method_changed=self._anchor_frame_method_changed,
            orientation_updated=orientation_updated,
            status=self._status
        )

    def update_joints_configuration(self):
        """Forward kinematics of the odometry robot, floating base at the identity"""
        self._frames = compose_kinematics(
            self.real_robot.tree, self.real_robot.joint_positions()
        )

    ###########################################################################
    # Contacts
    ###########################################################################

    def _local_frame(self, name: str) -> Kinematics:
        """Pose of a frame of the odometry robot in the floating base frame"""
        return frame_kinematics(self.real_robot.tree, self._frames, name)

    def _update_contact_kinematics(self, contact: Contact):
        contact.local_kinematics = self._local_frame(contact.frame_name)
        contact.current_kinematics = self._fb_pose * contact.local_kinematics
        if isinstance(contact, ContactWithSensor):
            # measured wrench expressed at the floating base
            contact.wrench_in_centroid = self._local_frame(contact.sensor_name).transform_wrench(contact.wrench)

    def _set_new_contact(self, contact: Contact):
        """Compute the reference pose in the world of a newly set contact"""
        if self.config.with_odometry:
            if isinstance(contact, ContactWithSensor) and not contact.sensor_enabled:
                logger.warning(
                    "[%s]: the sensor of %s is disabled but is required for the odometry, "
                    "it will be used for the odometry only", self.name, contact.name
                )
            reference = self._fb_pose * contact.local_kinematics
        else:
            reference = self.robot.forward_kinematics_of(contact.frame_name)

        if self._odometry_type == OdometryType.FLAT:
            reference.position[2] = self._altitude_robot().forward_kinematics_of(
                contact.frame_name
            ).position[2]

        contact.reference_kinematics = reference

        if self.contact_filter is not None:
            if self.contact_filter.number_of_set_contacts() > 0:
                init_covariance = self.config.contact_init_covariance_new
            else:
                init_covariance = self.config.contact_init_covariance_first
            self.contact_filter.add_contact(
                reference,
                np.diag(init_covariance),
                np.diag(self.config.contact_process_covariance),
                contact.id,
                self.config.stiffness,
                self.config.damping
            )
            self._call(self.on_added_contact, contact)

        logger.debug("[%s]: reference of %s: %s", self.name, contact.name, reference)

    def _update_filter_contact(self, contact: Contact):
        """Give the contact kinematics and its measured wrench to the filter"""
        if self.contact_filter is None:
            return

        if not isinstance(contact, ContactWithSensor):
            self.contact_filter.update_contact_with_no_sensor(contact.local_kinematics, contact.id)
            return

        if contact.sensor_enabled:
            wrench = contact.wrench
            if not contact.sensor_attached_to_surface and contact.surface_name is not None:
                # wrench expressed in the frame of the surface
                surface_sensor = contact.local_kinematics.inverse() * self._local_frame(contact.sensor_name)
                wrench = surface_sensor.transform_wrench(wrench)
            self.contact_filter.update_contact_with_wrench_sensor(
                wrench,
                np.diag(self.config.contact_sensor_covariance),
                contact.local_kinematics,
                contact.id
            )
            if not contact.sensor_was_enabled:
                logger.debug("[%s]: measurements of %s enabled", self.name, contact.name)
                contact.sensor_was_enabled = True
        else:
            self.contact_filter.update_contact_with_no_sensor(contact.local_kinematics, contact.id)
            if contact.sensor_was_enabled:
                logger.debug("[%s]: measurements of %s disabled", self.name, contact.name)
                contact.sensor_was_enabled = False

    ###########################################################################
    # Floating base
    ###########################################################################

    def _update_orientation(self, found: FrozenSet[int], tilt: Optional[np.ndarray]) -> bool:
        """
        Orientation odometry

        Returns:
            True if the orientation was estimated from the contacts
        """
        selection = self._selector.select(self._detector.contacts(found))
        self._orientation_selection = selection

        tilt_source = self._fb_pose.orientation if tilt is None else np.asarray(tilt, dtype=float)

        if not selection.updatable or not self.config.with_yaw_estimation:
            # the previous yaw is kept, only the tilt may change
            if tilt is not None:
                self._fb_pose.orientation = merge_tilt_with_yaw(tilt_source, self._fb_pose.orientation)
            return False

        rotations = []
        weights = []
        for contact_id in selection.contacts:
            contact = self.registry.get(contact_id)
            contact.world_fb_kinematics.orientation = (
                contact.reference_kinematics.orientation @ contact.local_kinematics.orientation.T
            )
            rotations.append(contact.world_fb_kinematics.orientation)
            weights.append(contact.force_norm)

        estimate = weighted_rotation_average(rotations, weights)
        self._fb_pose.orientation = merge_tilt_with_yaw(tilt_source, estimate)

        logger.debug("[%s]: orientation from %s", self.name,
                     self._detector.to_string(selection.contacts))
        return True

    def _update_position(self, found: FrozenSet[int]):
        """Position odometry: force-weighted average over the set contacts"""
        if not found:
            return

        positions = []
        weights = []
        for contact in self._detector.contacts(found):
            position = (
                contact.reference_kinematics.position
                - self._fb_pose.orientation @ contact.local_kinematics.position
            )
            contact.world_fb_kinematics.position = position
            positions.append(position)
            weights.append(contact.force_norm)

        weights = np.array(weights)
        if weights.sum() <= 0.0:
            logger.warning("[%s]: no force measured on the set contacts, uniform weights used", self.name)
            weights = np.ones(len(positions))

        self._fb_pose.position = np.average(np.array(positions), axis=0, weights=weights)

    def _correct_contacts_references(self, found: FrozenSet[int], correct_all_orientations: bool):
        """
        Make the references of the contacts consistent with the new pose

        The orientation of the contacts used for the orientation odometry is
        kept unless the attitude was given.
        """
        for contact in self._detector.contacts(found):
            world_contact = self._fb_pose * contact.local_kinematics
            if correct_all_orientations or contact.id not in self._orientation_selection:
                contact.reference_kinematics.orientation = world_contact.orientation
            contact.reference_kinematics.position = world_contact.position
            contact.current_kinematics = world_contact

    def _update_velocity(self, previous_pose, velocity, acceleration, upstream_orientation):
        policy = self.config.velocity_update
        if policy == VelocityUpdate.NO_UPDATE:
            self._velocity = None if velocity is None else np.array(velocity, dtype=float)
            self._acceleration = None if acceleration is None else np.array(acceleration, dtype=float)
            return

        if upstream_orientation is None:
            upstream_orientation = self.real_robot.forward_kinematics_of(
                self.real_robot.tree.root
            ).orientation
        # rotation from the upstream floating base frame to the new one
        rotation = self._fb_pose.orientation @ np.asarray(upstream_orientation, dtype=float).T

        if policy == VelocityUpdate.FINITE_DIFF:
            dt = self.config.dt
            linear = (self._fb_pose.position - previous_pose.position) / dt
            angular = rotation_difference_vector(previous_pose.orientation, self._fb_pose.orientation) / dt
            self._velocity = np.concatenate([linear, angular])
        elif velocity is not None:
            self._velocity = self._rotate_motion(rotation, velocity)
        else:
            self._velocity = None

        self._acceleration = None if acceleration is None else self._rotate_motion(rotation, acceleration)

    @staticmethod
    def _rotate_motion(rotation: np.ndarray, motion) -> np.ndarray:
        motion = np.asarray(motion, dtype=float)
        return np.concatenate([rotation @ motion[:3], rotation @ motion[3:]])

    def _altitude_robot(self) -> RobotModel:
        if self.config.flat_altitude_source == 'measured':
            return self.real_robot
        return self.robot

    ###########################################################################
    # Anchor frame
    ###########################################################################

    def _fallback_anchor(self) -> Kinematics:
        if self._anchor_body_sensor is None:
            return self._fb_pose.copy()
        return self._fb_pose * self._local_frame(self._anchor_body_sensor)

    def _update_anchor_frame(self, found: FrozenSet[int]):
        """
        Anchor frame from the set contacts, or from the body sensor when
        the robot is hanging
        """
        contacts = self._detector.contacts(found)
        self._curr_anchor_from_contacts = len(contacts) > 0

        if not contacts:
            self._anchor_frame = self._fallback_anchor()
        elif self.config.anchor_policy == AnchorPolicy.FORCE_WEIGHTED:
            weights = np.array([c.force_norm for c in contacts])
            if weights.sum() <= 0.0:
                weights = np.ones(len(contacts))
            self._anchor_frame = Kinematics(
                position=np.average([c.current_kinematics.position for c in contacts],
                                    axis=0, weights=weights),
                orientation=weighted_rotation_average(
                    [c.current_kinematics.orientation for c in contacts], weights
                )
            )
        else:
            if self.config.anchor_policy == AnchorPolicy.HIGHEST_FORCE:
                anchor = min(contacts, key=lambda c: (-c.force_norm, c.id))
            else:
                anchor = contacts[0]
            self._anchor_frame = anchor.current_kinematics.copy()

        self._anchor_frame_method_changed = (
            self._prev_anchor_from_contacts is not None
            and self._prev_anchor_from_contacts != self._curr_anchor_from_contacts
        )
        if self._anchor_frame_method_changed:
            logger.info("[%s]: anchor frame now computed from %s", self.name,
                        'the contacts' if self._curr_anchor_from_contacts
                        else f'the body sensor {self._anchor_body_sensor}')
        self._prev_anchor_from_contacts = self._curr_anchor_from_contacts

    @staticmethod
    def _call(callback: Optional[ContactCallback], contact: Contact):
        if callback is not None:
            callback(contact)
