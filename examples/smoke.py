import json

from schema_llm import ContextFactory, bundled_schema_directory, create_registry
from schema_llm.errors import ValidationError


def main() -> None:
    factory = ContextFactory(create_registry(bundled_schema_directory()))
    print("Providers:", ", ".join(factory.get_available_providers()))

    for provider in ("claude", "openai"):
        context = factory.create_context(provider)
        context.set_api_key("DUMMY").set_system_message("You are terse.").add_user_message("hi")
        print(f"--- {provider} -> {context.endpoint}")
        print(json.dumps(context.build_request(), indent=2))

    # Demonstrate parameter validation (Claude caps temperature at 1.0)
    try:
        factory.create_context("claude").set_parameter("temperature", 1.7)
    except ValidationError as e:
        print("Expected error:", type(e).__name__, e)


if __name__ == "__main__":
    main()
