"""Taichi ray tracer and Monte Carlo view-factor estimator.

This package renders scenes of spheres, cubes and planar patches with
Lambertian, metal and dielectric materials, and estimates radiative view
factors between scene forms by Monte Carlo integration.

Subpackages:
    core: Rays, the path-tracing integrator and the progressive renderer
    geometry: Sphere, cube and patch intersection and sampling
    materials: Lambertian, metal and dielectric scattering
    scene: Form table, scene manager and random world generators
    camera: Pinhole and thin lens cameras
    radiation: Monte Carlo view factors
    preview: Image export and matplotlib previews
"""

__version__ = "0.1.0"
