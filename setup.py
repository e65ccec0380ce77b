from setuptools import setup, find_packages

setup(
    name='globemesh',
    version='0.1.0',
    description='Triangulated country meshes and borders projected onto a globe',
    packages=find_packages(include=['globemesh', 'globemesh.*']),
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'numba',
        'mapbox-earcut',
    ],
    extras_require={
        'tests': ['pytest'],
        'cuda': ['cupy'],
    },
)
