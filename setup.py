from setuptools import setup, find_packages

setup(
    name="jitstore",
    version="1.0.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.8",
    install_requires=["pyyaml"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "jit=jitstore.client:main",
        ],
    },
)
