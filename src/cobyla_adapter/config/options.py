"""This module defines utilities for validating engine options.

Engine plugins describe the options they accept per method with a schema
dictionary. The classes in this module turn such a schema into a Pydantic
model, so that options passed via
[`CobylaConfig`][cobyla_adapter.config.CobylaConfig] can be checked before an
engine is started.
"""

from __future__ import annotations

from textwrap import dedent
from typing import Any, Callable, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, HttpUrl, create_model, model_validator

T = TypeVar("T")


class OptionsSchemaModel(BaseModel):
    """Represents the overall schema for engine options.

    The methods of an engine are described in a dictionary of
    [`MethodSchemaModel`][cobyla_adapter.config.options.MethodSchemaModel]
    objects, keyed by method name.

    Attributes:
        methods: The method schemas.

    **Example**:
    ```py
    from cobyla_adapter.config.options import OptionsSchemaModel

    schema = OptionsSchemaModel.model_validate(
        {"methods": {"cobyla": {"options": {"catol": float}}}}
    )

    options = schema.get_options_model("cobyla")
    print(options.model_validate({"catol": 1e-4}))  # catol=0.0001
    ```
    """

    methods: dict[str, MethodSchemaModel[Any]]

    model_config = ConfigDict(extra="forbid")

    def get_options_model(self, method: str) -> type[BaseModel]:
        """Create a Pydantic model for validating the options of a method.

        Args:
            method: The name of the method for which to create the options model.

        Returns:
            A Pydantic model class validating options for the specified method.

        Raises:
            ValueError: If the method is not described by the schema.
        """
        options: dict[str, Any] | None = None
        for method_name, method_schema in self.methods.items():
            if method_name.lower() == method.lower():
                options = {
                    option: (Union[type_, None], None)  # noqa: UP007
                    for option, type_ in method_schema.options.items()
                }
                break
        if options is None:
            msg = f"Method `{method}` not found in schema."
            raise ValueError(msg)

        def _extra_validator(self: Any) -> Any:  # noqa: ANN401
            if self.__pydantic_extra__:
                unknown_options = ", ".join(
                    f"`{option}`" for option in self.__pydantic_extra__
                )
                msg = f"Unknown or unsupported option(s): {unknown_options}"
                raise ValueError(msg)
            return self

        validator: Callable[..., Any] = model_validator(mode="after")(_extra_validator)  # type: ignore[assignment]

        return create_model(
            "OptionsModel",
            __config__=ConfigDict(extra="allow"),
            __validators__={"_extra_validator": validator},
            **options,
        )


class MethodSchemaModel(BaseModel, Generic[T]):
    """Represents the schema for a specific method of an engine.

    Attributes:
        options: A dictionary mapping option names to their types.
        url:     An optional URL documenting the method.
    """

    options: dict[str, T]
    url: HttpUrl | None = None

    model_config = ConfigDict(extra="forbid")


def gen_options_table(schema: dict[str, Any]) -> str:
    """Generate a Markdown table documenting engine options.

    Args:
        schema: A dictionary representing the schema of engine options.

    Returns:
        A string containing a Markdown table that documents the options.
    """
    OptionsSchemaModel.model_validate(schema)

    docstring = dedent("""
    | Method | Method Options |
    |--------|----------------|
    """)

    for method, method_schema in schema["methods"].items():
        url = MethodSchemaModel.model_validate(method_schema).url
        options = ", ".join(key for key in method_schema["options"])
        if url:
            docstring += f"|[{method}]({url})|{options}|\n"
        else:
            docstring += f"|{method}:|{options}|\n"

    return docstring
