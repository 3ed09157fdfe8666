"""Taichi-based Monte Carlo path tracer.

This package renders scenes of (optionally moving) spheres under a sky
gradient by averaging many random light paths per pixel, with support for:
- Diffuse, fuzzy specular and refractive materials
- Thin-lens depth of field and shutter-interval motion blur
- Reproducible, seed-driven parallel sampling
- Progressive rendering with accumulation

Subpackages:
    core: Random streams, rays, the path tracing integrator and renderers
    geometry: Motion curves, bounding boxes and the sphere primitive
    materials: Scattering policies and the shared material table
    scene: Scene description, device upload and demo scenes
    camera: Thin-lens camera with ray generation
    preview: Gamma encoding and PNG export

Taichi must be initialised (``ti.init(..., default_fp=ti.f64)``) before
importing modules that declare fields (integrator, renderer, progressive,
scene.intersection, scene.demo, materials.registry, camera.thin_lens).
"""

__version__ = "0.1.0"
