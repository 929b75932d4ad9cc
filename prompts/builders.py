"""
Prompt builders for the two prediction call shapes.
"""

from config import SHAPE_INDEX_THRESHOLD
from pipeline.shape_index import derive
from prompts.base_builder import BasePromptBuilder, PromptOutput
from prompts.egg_prompts import IMAGE_USER_PROMPT, MEASUREMENT_USER_PROMPT_TEMPLATE, OUTPUT_FORMAT


class ImagePromptBuilder(BasePromptBuilder):
    """Prompt for a photo of a single egg. The image travels separately."""

    def build(self, **kwargs) -> PromptOutput:
        return PromptOutput(
            system_prompt=self.system_prompt,
            user_prompt=IMAGE_USER_PROMPT,
            metadata={'variant': 'image'}
        )


class MeasurementPromptBuilder(BasePromptBuilder):
    """Prompt for caliper measurements of a single egg."""

    def build(
        self,
        long_axis_mm: float,
        short_axis_mm: float,
        weight_g: float,
        **kwargs
    ) -> PromptOutput:
        shape_index = derive(long_axis_mm, short_axis_mm)
        user_prompt = MEASUREMENT_USER_PROMPT_TEMPLATE.format(
            threshold=SHAPE_INDEX_THRESHOLD,
            long_axis_mm=long_axis_mm,
            short_axis_mm=short_axis_mm,
            weight_g=weight_g,
            shape_index=shape_index,
            output_format=OUTPUT_FORMAT
        )
        return PromptOutput(
            system_prompt=self.system_prompt,
            user_prompt=user_prompt,
            metadata={'variant': 'measurement', 'shape_index': shape_index}
        )
