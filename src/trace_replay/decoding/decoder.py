"""
Confidence-ranked call decoding.

Tiers, highest first:
1. typed_abi       - selector matches a function in a local ABI
2. resolver_typed  - resolved signature (or a type override) decodes the payload
3. resolver_raw    - resolved signature kept, parameters rebuilt from raw words
4. opaque          - nothing resolved, payload replayed verbatim
"""

import logging
from typing import Any, Dict, List, Optional

from web3 import Web3

from ..abi import ABI, infer_abi_type, infer_tuple_array_type, infer_tuple_type, is_canonical_type, parse_signature
from ..models import DecodedCall, DecodedMethod, DecodedParam, DecodeTier, Invocation
from .overrides import TypeOverrideRegistry, default_type_overrides
from .raw import RawReconstructionMixin
from .resolver import SignatureResolver
from .typed import TypedDecodingMixin

logger = logging.getLogger(__name__)

NATIVE_TRANSFER_NAME = "nativeTransfer"


def parse_call_data(raw_call_data) -> Optional[bytes]:
    """Hex payload to bytes, or None if it is not valid hex."""
    if not isinstance(raw_call_data, str):
        return None
    value = raw_call_data.strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    if len(value) % 2:
        return None
    try:
        return bytes.fromhex(value)
    except ValueError:
        return None


def canonical_type(param_type: str) -> str:
    """Canonical form of a single type string; unparseable input is returned stripped."""
    try:
        _, types = parse_signature(f"t({param_type})")
    except ValueError:
        return param_type.strip()
    return types[0] if types else param_type.strip()


def opaque_name(selector: str) -> str:
    return f"unknownFunction_{selector[2:].lower()}"


def parameter_type(entry: Dict[str, Any]) -> Optional[str]:
    """
    Concrete ABI type of one trace-supplied parameter.

    Uses the declared type when it is concrete, ABI JSON `components` for
    `tuple` types, and otherwise infers the type from the value.
    """
    declared = (entry.get("type") or "").strip()
    components = entry.get("components")
    if declared.startswith("tuple") and isinstance(components, list) and components:
        inner = [parameter_type(c) if isinstance(c, dict) else None for c in components]
        if None not in inner:
            declared = f"({','.join(inner)}){declared[len('tuple'):]}"

    if declared:
        candidate = canonical_type(declared)
        if is_canonical_type(candidate):
            return candidate

    value = entry.get("value")
    if declared == "tuple":
        return infer_tuple_type(value)
    if declared == "tuple[]":
        return infer_tuple_array_type(value)
    return infer_abi_type(value)


def decoded_method_types(method: DecodedMethod) -> List[Optional[str]]:
    """Parameter types of a decodedMethod; None marks a type that could not be determined."""
    if method.signature:
        try:
            _, signature_types = parse_signature(method.signature)
        except ValueError:
            logger.debug(f"Ignoring malformed decodedMethod signature {method.signature!r}")
        else:
            if len(signature_types) == len(method.parameters) and all(is_canonical_type(t) for t in signature_types):
                return signature_types
    return [parameter_type(entry) for entry in method.parameters]


class CallDecoder(TypedDecodingMixin, RawReconstructionMixin):
    """Composite decoder: typed decoding plus raw-word reconstruction."""

    def __init__(
        self,
        resolver: SignatureResolver,
        type_overrides: Optional[TypeOverrideRegistry] = None,
        w3: Optional[Web3] = None,
    ):
        self.resolver = resolver
        self.type_overrides = type_overrides if type_overrides is not None else default_type_overrides()
        self.w3 = w3 or Web3()

    async def _resolve(self, selector: str):
        try:
            return await self.resolver.resolve(selector)
        except Exception as e:
            logger.warning(f"⚠️  Signature resolution failed for {selector}: {e}")
            return None

    def _opaque(self, target: str, selector: str, raw_call_data: str) -> DecodedCall:
        name = opaque_name(selector)
        return DecodedCall(
            target=target,
            name=name,
            signature=f"{name}()",
            tier=DecodeTier.OPAQUE,
            selector=selector,
            raw_call_data=raw_call_data,
        )

    def _decode_with_abi(self, target: str, selector: str, args: bytes, raw: str, local_abi: ABI) -> Optional[DecodedCall]:
        function_data = local_abi.find_function_by_selector(selector)
        if not function_data:
            return None

        params = self._decode_typed_params(function_data["input_types"], args, function_data["param_names"])
        if params is None:
            logger.info(f"Local ABI matched {function_data['signature']} but the payload did not decode")
            return None

        return DecodedCall(
            target=target,
            name=function_data["name"],
            signature=function_data["signature"],
            params=params,
            tier=DecodeTier.TYPED_ABI,
            selector=selector,
            raw_call_data=raw,
        )

    def _decode_with_overrides(self, info, args: bytes) -> Optional[tuple]:
        for types in self.type_overrides.candidates(info.function_name, info.parameter_types):
            params = self._decode_typed_params(types, args)
            if params is not None:
                logger.info(f"Decoded {info.function_name} with type override ({','.join(types)})")
                return f"{info.function_name}({','.join(types)})", params
        return None

    async def _decode(self, target: str, raw_call_data: str, local_abi: Optional[ABI]) -> Optional[DecodedCall]:
        data = parse_call_data(raw_call_data)
        if data is None or len(data) < 5:
            return None

        target = (target or "").lower()
        selector = "0x" + data[:4].hex()
        args = data[4:]
        raw = "0x" + data.hex()

        if local_abi is not None:
            call = self._decode_with_abi(target, selector, args, raw, local_abi)
            if call:
                return call

        info = await self._resolve(selector)
        if info is None:
            return self._opaque(target, selector, raw)

        params = self._decode_typed_params(info.parameter_types, args)
        if params is not None:
            return DecodedCall(
                target=target,
                name=info.function_name,
                signature=info.text_signature,
                params=params,
                tier=DecodeTier.RESOLVER_TYPED,
                selector=selector,
                raw_call_data=raw,
            )

        override = self._decode_with_overrides(info, args)
        if override:
            signature, params = override
            return DecodedCall(
                target=target,
                name=info.function_name,
                signature=signature,
                params=params,
                tier=DecodeTier.RESOLVER_TYPED,
                selector=selector,
                raw_call_data=raw,
            )

        logger.info(f"Parameters of {info.text_signature} did not decode; reconstructing from raw words")
        return DecodedCall(
            target=target,
            name=info.function_name,
            signature=info.text_signature,
            params=self._reconstruct_params(args, info.parameter_types),
            tier=DecodeTier.RESOLVER_RAW,
            selector=selector,
            raw_call_data=raw,
        )

    async def decode(self, target: str, raw_call_data: str, local_abi: Optional[ABI] = None) -> Optional[DecodedCall]:
        """
        Decode one call payload.

        Never raises: unexpected failures degrade to the opaque tier.

        Args:
            target: Called contract address
            raw_call_data: Hex payload (selector + arguments)
            local_abi: Optional verified ABI for the target

        Returns:
            DecodedCall, or None if the payload is not hex or shorter than 5 bytes
        """
        try:
            return await self._decode(target, raw_call_data, local_abi)
        except Exception as e:
            logger.warning(f"⚠️  Unexpected decode failure for call to {target}: {e}")
            data = parse_call_data(raw_call_data)
            if data is None or len(data) < 5:
                return None
            return self._opaque((target or "").lower(), "0x" + data[:4].hex(), "0x" + data.hex())

    def _from_decoded_method(self, invocation: Invocation) -> Optional[DecodedCall]:
        """
        Build a call from a trace-supplied decodedMethod.

        Returns None when the parameter types cannot be determined but the
        payload can still go through the tiered decoder.
        """
        method = invocation.decoded_method
        types = decoded_method_types(method)
        params = [
            DecodedParam(
                name=entry.get("name") or f"param{index}",
                type=types[index] or (entry.get("type") or "bytes"),
                value=entry.get("value"),
            )
            for index, entry in enumerate(method.parameters)
        ]

        data = parse_call_data(invocation.call_data)
        selector = invocation.selector
        if not selector and data is not None and len(data) >= 4:
            selector = "0x" + data[:4].hex()

        if None in types:
            if data is not None and len(data) >= 5:
                logger.info(f"Parameter types of decodedMethod {method.name} are incomplete; decoding the payload")
                return None
            logger.warning(
                f"⚠️  Parameter types of {method.name} could not be determined; replaying the raw payload"
            )
            return DecodedCall(
                target=(invocation.to_address or "").lower(),
                name=method.name,
                signature=f"{method.name}({','.join(p.type for p in params)})",
                params=params,
                tier=DecodeTier.RESOLVER_RAW,
                selector=selector,
                raw_call_data=invocation.call_data,
                value=invocation.value,
            )

        name = method.name
        if method.signature and "(" in method.signature:
            name = method.signature[:method.signature.index("(")].strip() or name
        return DecodedCall(
            target=(invocation.to_address or "").lower(),
            name=name,
            signature=f"{name}({','.join(types)})",
            params=params,
            tier=DecodeTier.TYPED_ABI,
            selector=selector,
            raw_call_data=invocation.call_data,
            value=invocation.value,
        )

    def _native_transfer(self, invocation: Invocation, payload: str = "0x") -> DecodedCall:
        return DecodedCall(
            target=(invocation.to_address or "").lower(),
            name=NATIVE_TRANSFER_NAME,
            signature=f"{NATIVE_TRANSFER_NAME}()",
            tier=DecodeTier.NATIVE_TRANSFER,
            raw_call_data=payload,
            value=invocation.value,
        )

    async def _decode_selector_only(self, invocation: Invocation, selector: str) -> DecodedCall:
        target = (invocation.to_address or "").lower()
        info = await self._resolve(selector)
        if info is not None and not info.parameter_types:
            return DecodedCall(
                target=target,
                name=info.function_name,
                signature=info.text_signature,
                tier=DecodeTier.RESOLVER_TYPED,
                selector=selector,
                raw_call_data=selector,
                value=invocation.value,
            )
        call = self._opaque(target, selector, selector)
        call.value = invocation.value
        return call

    async def decode_invocation(self, invocation: Invocation, local_abi: Optional[ABI] = None) -> DecodedCall:
        """
        Decode an ingested invocation, always returning a replayable call.

        Order: trace-provided decodedMethod, plain value transfer,
        selector-only payload, then the tiered `decode()`.
        """
        if invocation.decoded_method is not None:
            call = self._from_decoded_method(invocation)
            if call is not None:
                return call

        data = parse_call_data(invocation.call_data)
        if data is None:
            logger.warning(
                f"⚠️  Malformed calldata in call to {invocation.to_address}; replaying as a plain transfer"
            )
            return self._native_transfer(invocation)

        if not data and not invocation.selector:
            return self._native_transfer(invocation)

        if len(data) == 4 or (not data and invocation.selector):
            selector = "0x" + data.hex() if data else invocation.selector
            return await self._decode_selector_only(invocation, selector)

        call = await self.decode(invocation.to_address, invocation.call_data, local_abi)
        if call is None:
            # 1-3 byte payloads carry no selector; replay them verbatim with the value
            return self._native_transfer(invocation, "0x" + data.hex())

        call.value = invocation.value
        return call
