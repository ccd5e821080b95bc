import setuptools

with open("README.txt", "r") as fn:
    long_description = fn.read()

setuptools.setup(
    name="PySkewt",
    version="0.1.0",
    description="A python package for decoding several common sounding formats and laying out skew-T log-p diagrams.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: GNU General Public License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.7',
    install_requires=["metpy>=1.0", "numpy"],
    extras_require={
        "test": ["pytest"],
        "plot": ["matplotlib"]
    }
)
