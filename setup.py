import os
from glob import glob

from setuptools import setup

package_name = 'nav_goal'

setup(
    name=package_name,
    version='0.1.0',
    packages=[package_name],
    data_files=[('share/ament_index/resource_index/packages',
                 ['resource/' + package_name]),
                ('share/' + package_name, ['package.xml']),
                (os.path.join('share', package_name, 'launch'), glob('launch/*.launch.py')),
                (os.path.join('share', package_name, 'config'), glob('config/*.yaml'))],
    install_requires=['setuptools', 'numpy', 'transforms3d', 'tf-transformations'],
    zip_safe=True,
    maintainer='kevin',
    maintainer_email='kevin@example.com',
    description='Map-frame docking goal from left/right ArUco marker detections',
    license='BSD',
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'nav_goal = nav_goal.nav_goal_node:main',
        ],
    },
)
