"""Build-time pipeline that turns a unit cube into canonical shards."""
from .config import GenerationSeeds, RandomSource, cycle_source, load_generation_config, random_source
from .settings import (
    CoreSettings,
    DestructionSettings,
    PhysicsSettings,
    ScheduleSettings,
    ShellSettings,
    TemplateSettings,
    load_destruction_settings,
)
from .shell_partition import FacePolygon, FaceSeed, ensure_face_coverage, estimate_face_coverage, partition_face
from .shell_templates import DepthRange, ShellShardTemplate, build_shell_shard_templates
from .shard_templates import (
    LayeredTemplate,
    SingleDepthTemplate,
    TemplateGeneratorOptions,
    TemplateKind,
    generate_shard_templates,
    validate_shard_template,
)
from .shard_coverage import (
    ShardTemplateSet,
    create_shard_template_set,
    get_default_shard_template_set,
    reset_default_shard_template_set,
)
from .face_uv import FaceUvRect, sample_face_uv
from .shell_geometry import ShellShardGeometry, build_shell_shard_geometry
from .shard_geometry import ShardGeometry, build_shard_geometry
from .core_grid import CoreJitterGrid, VolumeCell, build_core_jitter_grid, build_volume_cells, validate_volume_cells
from .core_clusters import CoreShardCluster, build_core_shard_clusters, validate_clusters
from .core_bindings import CoreShardBinding, CoreShardLayer, build_core_shard_bindings, validate_core_bindings
from .canonical import (
    CanonicalShard,
    CanonicalShardSet,
    MaterialKind,
    assemble_canonical_shards,
    build_canonical_shard_set,
)
from .report import (
    CanonicalShardReport,
    build_canonical_shard_report,
    export_canonical_shard_report,
    log_canonical_shard_report,
    validate_canonical_shard_volume,
)

__all__ = [
    "GenerationSeeds",
    "RandomSource",
    "cycle_source",
    "load_generation_config",
    "random_source",
    "CoreSettings",
    "DestructionSettings",
    "PhysicsSettings",
    "ScheduleSettings",
    "ShellSettings",
    "TemplateSettings",
    "load_destruction_settings",
    "FacePolygon",
    "FaceSeed",
    "ensure_face_coverage",
    "estimate_face_coverage",
    "partition_face",
    "DepthRange",
    "ShellShardTemplate",
    "build_shell_shard_templates",
    "LayeredTemplate",
    "SingleDepthTemplate",
    "TemplateGeneratorOptions",
    "TemplateKind",
    "generate_shard_templates",
    "validate_shard_template",
    "ShardTemplateSet",
    "create_shard_template_set",
    "get_default_shard_template_set",
    "reset_default_shard_template_set",
    "FaceUvRect",
    "sample_face_uv",
    "ShellShardGeometry",
    "build_shell_shard_geometry",
    "ShardGeometry",
    "build_shard_geometry",
    "CoreJitterGrid",
    "VolumeCell",
    "build_core_jitter_grid",
    "build_volume_cells",
    "validate_volume_cells",
    "CoreShardCluster",
    "build_core_shard_clusters",
    "validate_clusters",
    "CoreShardBinding",
    "CoreShardLayer",
    "build_core_shard_bindings",
    "validate_core_bindings",
    "CanonicalShard",
    "CanonicalShardSet",
    "MaterialKind",
    "assemble_canonical_shards",
    "build_canonical_shard_set",
    "CanonicalShardReport",
    "build_canonical_shard_report",
    "export_canonical_shard_report",
    "log_canonical_shard_report",
    "validate_canonical_shard_volume",
]
