#!/usr/bin/env python3
from __future__ import annotations

import math
from typing import Optional

import rclpy
from rclpy.node import Node
from rclpy.duration import Duration
from rclpy.time import Time
from rcl_interfaces.msg import SetParametersResult
from geometry_msgs.msg import PoseArray, PoseStamped
from std_msgs.msg import Bool
from std_srvs.srv import Trigger
from tf2_ros import Buffer, TransformListener
from tf2_ros import LookupException, ConnectivityException, ExtrapolationException

from nav_goal.goal_tracker import GoalSettings, GoalTracker
from nav_goal.poses import GoalPose, MarkerDetection, Side
from nav_goal.throttled_logger import ThrottledLogger
from nav_goal.transforms import RigidTransform, yaw_from_quat

TF_ERRORS = (LookupException, ConnectivityException, ExtrapolationException)

# must stay > 0, everything else is free
POSITIVE_PARAMS = ('publish_rate_hz', 'docking_distance_threshold',
                   'marker_staleness_sec', 'transform_timeout_sec')

# bound to subscriptions at startup
READ_ONCE_PARAMS = ('marker_topic_front_left', 'marker_topic_front_right')


def check_positive(name: str, value) -> Optional[str]:
    """Return why `value` is not a valid setting for `name`, or None."""
    if name not in POSITIVE_PARAMS:
        return None
    if not isinstance(value, (int, float)) or isinstance(value, bool) \
            or not math.isfinite(value) or value <= 0.0:
        return f"{name} must be > 0, got {value!r}"
    return None


def goal_to_msg(goal: GoalPose) -> PoseStamped:
    msg = PoseStamped()
    msg.header.frame_id = goal.frame_id
    msg.header.stamp = Time(nanoseconds=goal.stamp).to_msg()
    msg.pose.position.x = float(goal.position[0])
    msg.pose.position.y = float(goal.position[1])
    msg.pose.position.z = float(goal.position[2])
    msg.pose.orientation.x = float(goal.orientation[0])
    msg.pose.orientation.y = float(goal.orientation[1])
    msg.pose.orientation.z = float(goal.orientation[2])
    msg.pose.orientation.w = float(goal.orientation[3])
    return msg


class NavGoal(Node):
    """
    Turns ArUco detections from the two front cameras into a Nav2 goal.

    Each camera callback projects the desired marker into the map frame and
    stores it as that side's goal. A timer republishes whichever side saw
    its marker most recently, unless that sighting is stale or the robot is
    already within docking distance.
    """

    def __init__(self, **kwargs):
        super().__init__('nav_goal', **kwargs)

        self.log = ThrottledLogger(self)

        # --- Parameters ---
        self.declare_parameter('map_frame', 'map')
        self.declare_parameter('camera_front_left_frame', 'camera_rgb_frame')
        self.declare_parameter('camera_front_right_frame', 'camera_rgb_frame')
        self.declare_parameter('desired_aruco_marker_id_left', -1)
        self.declare_parameter('desired_aruco_marker_id_right', -1)
        self.declare_parameter('aruco_distance_offset', -0.5)     # m, camera x
        self.declare_parameter('aruco_left_right_offset', 0.0)    # m, camera y (+left / -right)
        self.declare_parameter('marker_topic_front_left', 'aruco_detect/markers_front')
        self.declare_parameter('marker_topic_front_right', 'aruco_detect/markers_front')
        self.declare_parameter('publish_rate_hz', 1.0)
        self.declare_parameter('docking_distance_threshold', 0.3)  # m
        self.declare_parameter('marker_staleness_sec', 1.0)
        self.declare_parameter('transform_timeout_sec', 2.0)

        for name in POSITIVE_PARAMS:
            reason = check_positive(name, self.get_parameter(name).value)
            if reason is not None:
                self.get_logger().error(f"Invalid startup parameter: {reason}")
                raise ValueError(reason)

        topic_left  = self.get_parameter('marker_topic_front_left').get_parameter_value().string_value
        topic_right = self.get_parameter('marker_topic_front_right').get_parameter_value().string_value
        self.rate_hz = float(self.get_parameter('publish_rate_hz').value)

        self.tracker = GoalTracker(self.read_settings())

        # --- TF ---
        self.tf_buffer = Buffer()
        self.tf_listener = TransformListener(self.tf_buffer, self)

        # --- IO ---
        self.sub_left = self.create_subscription(
            PoseArray, topic_left, self.on_markers_left, 10)
        self.sub_right = self.create_subscription(
            PoseArray, topic_right, self.on_markers_right, 10)

        self.pub_goal = self.create_publisher(PoseStamped, 'goal_pose', 10)
        self.pub_docking = self.create_publisher(Bool, 'docking_status', 10)

        self.srv_reset = self.create_service(Trigger, '~/reset', self.reset_cb)

        self.timer = self.create_timer(1.0 / self.rate_hz, self.publish_goal)

        self.add_on_set_parameters_callback(self.on_param_set)

        settings = self.tracker.settings
        self.get_logger().info(
            f"nav_goal started: left={self.camera_frame(Side.LEFT)} on {topic_left} "
            f"(marker {settings.desired_marker_id_left}), "
            f"right={self.camera_frame(Side.RIGHT)} on {topic_right} "
            f"(marker {settings.desired_marker_id_right}), "
            f"offsets=({settings.distance_offset:.3f}, {settings.lateral_offset:.3f}), "
            f"rate={self.rate_hz:.2f} Hz"
        )

    # ------------------- parameters -------------------

    def read_settings(self) -> GoalSettings:
        return GoalSettings(
            map_frame=self.get_parameter('map_frame').get_parameter_value().string_value,
            desired_marker_id_left=int(self.get_parameter('desired_aruco_marker_id_left').value),
            desired_marker_id_right=int(self.get_parameter('desired_aruco_marker_id_right').value),
            distance_offset=float(self.get_parameter('aruco_distance_offset').value),
            lateral_offset=float(self.get_parameter('aruco_left_right_offset').value),
            docking_distance_threshold=float(self.get_parameter('docking_distance_threshold').value),
            marker_staleness_sec=float(self.get_parameter('marker_staleness_sec').value),
        )

    def camera_frame(self, side: Side) -> str:
        name = 'camera_front_left_frame' if side is Side.LEFT else 'camera_front_right_frame'
        return self.get_parameter(name).get_parameter_value().string_value

    def on_param_set(self, params):
        for p in params:
            if p.name in READ_ONCE_PARAMS:
                return SetParametersResult(successful=False, reason=f"{p.name} is fixed at startup")
            reason = check_positive(p.name, p.value)
            if reason is not None:
                return SetParametersResult(successful=False, reason=reason)

        for p in params:
            if p.name == 'publish_rate_hz' and float(p.value) != self.rate_hz:
                self.restart_timer(float(p.value))
        return SetParametersResult(successful=True)

    def restart_timer(self, rate_hz: float):
        self.timer.cancel()
        self.destroy_timer(self.timer)
        self.rate_hz = rate_hz
        self.timer = self.create_timer(1.0 / rate_hz, self.publish_goal)
        self.get_logger().info(f"Goal publish rate set to {rate_hz:.2f} Hz")

    def now_sec(self) -> float:
        return self.get_clock().now().nanoseconds * 1e-9

    # ------------------- reset service -------------------

    def reset_cb(self, _req, res):
        self.tracker.reset()
        res.success = True
        res.message = "Left and right goals cleared; waiting for fresh marker detections."
        self.get_logger().info(res.message)
        return res

    # ------------------- subscribers -------------------

    def on_markers_left(self, msg: PoseArray):
        self.on_markers(Side.LEFT, msg)

    def on_markers_right(self, msg: PoseArray):
        self.on_markers(Side.RIGHT, msg)

    def lookup_camera_to_map(self, side: Side) -> RigidTransform:
        timeout = float(self.get_parameter('transform_timeout_sec').value)
        t = self.tf_buffer.lookup_transform(
            self.tracker.settings.map_frame,
            self.camera_frame(side),
            Time(),
            timeout=Duration(seconds=timeout),
        )
        return RigidTransform.from_msg(t)

    def on_markers(self, side: Side, msg: PoseArray):
        self.tracker.configure(self.read_settings())

        stamp = Time.from_msg(msg.header.stamp).nanoseconds
        detections = [MarkerDetection.from_pose(msg.header.frame_id, pose, stamp) for pose in msg.poses]

        now_ns = self.get_clock().now().nanoseconds
        try:
            result = self.tracker.handle_detections(
                side, detections, lambda: self.lookup_camera_to_map(side),
                now_ns * 1e-9, stamp_ns=now_ns)
        except TF_ERRORS as e:
            self.log.warn(1.0,
                f"Could not transform {self.camera_frame(side)} to "
                f"{self.tracker.settings.map_frame}: {e}",
                key=f"tf_{side.value}")
            return

        for reason in result.rejected:
            self.log.warn(1.0, f"Dropped {side.value} detection {reason}", key=f"rejected_{side.value}")

        if not result.updated:
            if result.matched == 0 and msg.poses:
                self.log.debug(5.0,
                    f"{side.value}: '{msg.header.frame_id}' is not marker "
                    f"{self.tracker.settings.desired_marker_id(side)}",
                    key=f"mismatch_{side.value}")
            return

        self.log.forget(f"tf_{side.value}")
        if result.docking_changed:
            state = "reached" if self.tracker.docking.docking else "left"
            self.get_logger().info(
                f"Docking distance {state} ({side.value} camera, "
                f"x={result.projection.longitudinal_distance:.3f} m, "
                f"threshold={self.tracker.docking.threshold:.3f} m)")
            self.pub_docking.publish(Bool(data=self.tracker.docking.docking))

    # ------------------- timer publish -------------------

    def publish_goal(self):
        self.tracker.configure(self.read_settings())
        decision = self.tracker.decide(self.now_sec())

        self.pub_docking.publish(Bool(data=self.tracker.docking.docking))

        if decision.goal is None:
            self.log.info(5.0, f"No goal published: {decision.reason}", key="no_goal")
            return

        self.pub_goal.publish(goal_to_msg(decision.goal))
        p, q = decision.goal.position, decision.goal.orientation
        self.log.info(1.0,
            f"Publishing {decision.side.value.upper()} goal: "
            f"x={p[0]:.3f}, y={p[1]:.3f}, z={p[2]:.3f}, yaw={yaw_from_quat(*q):.3f} "
            f"({decision.reason})",
            key="goal")


def main(args=None):
    rclpy.init(args=args)
    node = NavGoal()
    try:
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    finally:
        node.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
