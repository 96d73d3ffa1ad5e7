from setuptools import setup, find_packages

setup(
    name="typerewind",
    version="0.1.0",
    description="Screen recorder where backspace rewinds the recording",
    author="",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "pynput>=1.7.6",
        "mss>=9.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "typerewind=typerewind.main:main",
        ],
    },
)
