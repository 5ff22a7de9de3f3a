from setuptools import setup, find_packages

setup(
    name="apsc",
    version="0.1",
    description="Active/Passive SideCar for kubernetes pods",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "kubernetes",
        "urllib3",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["apsc=apsc.commands.main:main"],
    },
)
