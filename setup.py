from setuptools import setup, find_namespace_packages

setup(
    name='pointpillars_trt',
    version='0.1.0',
    packages=find_namespace_packages(include=['config', 'config.*', 'Lidar', 'Lidar.*'], exclude=['Lidar.tests']),
    package_data={'config': ['config.yaml']},
    author='Your Name',
    author_email='your.email@example.com',
    description='PointPillars LiDAR detection on TensorRT with engine caching and rotated NMS.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    install_requires=open('requirements.txt').read().splitlines(),
    python_requires='>=3.9',
    extras_require={
        'gpu': open('requirements-gpu.txt').read().splitlines(),
        'dev': open('requirements-dev.txt').read().splitlines(),
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Programming Language :: Python :: 3',
    ],
    entry_points={
        'console_scripts': [
            'pointpillars=Lidar.main:main',
            'pointpillars_validate=config.validate_env:main',
        ],
    },
)
