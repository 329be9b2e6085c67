#!/usr/bin/env python3
"""
Setup script for the Proctoring Monitor.
"""

import os
import sys
from setuptools import setup, find_packages
from setuptools.command.install import install
from setuptools.command.develop import develop


def read_requirements(filename):
    """Read requirements from file."""
    with open(filename, 'r') as f:
        return [line.strip() for line in f if line.strip() and not line.startswith('#')]


def check_system_requirements():
    """Check if system meets requirements."""
    print("Checking system requirements...")

    if sys.version_info < (3, 9):
        print("ERROR: Python 3.9 or higher is required")
        return False

    print(f"✓ Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    return True


def create_directories():
    """Create necessary directories."""
    print("Creating directories...")

    directories = [
        "data",
        "data/models",
        "logs",
        "sessions",
    ]

    for directory in directories:
        os.makedirs(directory, exist_ok=True)
        print(f"✓ Created directory: {directory}")


def check_models():
    """Report which identity models are present."""
    print("Checking for identity models...")

    model_files = [
        "data/models/shape_predictor_68_face_landmarks.dat",
        "data/models/dlib_face_recognition_resnet_model_v1.dat",
    ]

    for model_file in model_files:
        if os.path.exists(model_file):
            print(f"✓ Model exists: {model_file}")
        else:
            print(f"⚠ Missing model: {model_file} (identity verification needs it)")


class CustomInstall(install):
    """Custom install command."""

    def run(self):
        if not check_system_requirements():
            sys.exit(1)

        install.run(self)

        create_directories()
        check_models()

        print("\n" + "="*60)
        print("Installation completed successfully!")
        print("="*60)
        print("\nTo run the monitor:")
        print("  proctoring-monitor --duration 60")
        print("\nTo run tests:")
        print("  python -m pytest tests")


class CustomDevelop(develop):
    """Custom develop command."""

    def run(self):
        if not check_system_requirements():
            sys.exit(1)

        develop.run(self)

        create_directories()
        check_models()

        print("\n" + "="*60)
        print("Development installation completed successfully!")
        print("="*60)


setup(
    name="proctoring-monitor",
    version="1.0.0",
    author="Proctoring Monitor Team",
    description="Webcam exam proctoring: attention, presence and identity monitoring",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Image Processing",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": [
            "pytest>=7.4.2",
        ],
        "recognition": [
            "dlib>=19.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "proctoring-monitor=main:main",
        ],
    },
    cmdclass={
        "install": CustomInstall,
        "develop": CustomDevelop,
    },
    keywords=[
        "proctoring",
        "attention",
        "computer-vision",
        "face-detection",
        "face-recognition",
        "gaze-estimation",
        "monitoring",
        "education",
    ],
)
