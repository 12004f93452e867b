import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node
from launch_ros.parameter_descriptions import ParameterValue


def generate_launch_description():
    # --- Common arguments ---
    use_sim_time = LaunchConfiguration('use_sim_time', default='false')
    params_file = LaunchConfiguration('params_file')

    default_params = os.path.join(
        get_package_share_directory('nav_goal'), 'config', 'nav_goal.yaml')

    nav_goal = Node(
        package='nav_goal',
        executable='nav_goal',
        name='nav_goal',
        parameters=[
            params_file,
            {'use_sim_time': ParameterValue(use_sim_time, value_type=bool)},
        ],
        # Nav2 listens on /goal_pose
        remappings=[('goal_pose', '/goal_pose')],
        output='screen',
        respawn=True,
    )

    return LaunchDescription([
        DeclareLaunchArgument('use_sim_time', default_value='false'),
        DeclareLaunchArgument('params_file', default_value=default_params,
                              description='nav_goal parameter file'),
        nav_goal,
    ])
