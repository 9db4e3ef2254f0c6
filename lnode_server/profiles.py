"""Fixed ChirpStack device-profile preset provisioned for every tenant.

RAK ABP nodes on AS923-2, LoRaWAN 1.0.3, class C, with the uplink decoder the
street-light firmware expects.
"""

from __future__ import annotations

from typing import Any

PROFILE_NAME = "RAK_ABP"

MEASUREMENT_KEYS = (
    "Dimming",
    "Energy",
    "PF",
    "Power",
    "Status_lamp",
    "Tilt",
    "alt",
    "current",
    "header_device",
    "lat",
    "lng",
    "status_code",
    "timestamp",
    "voltage",
)

PAYLOAD_CODEC_SCRIPT = """function decodeUplink(input) {
  let header_device = input.bytes[0];

  if (header_device == 4) {
    let status_code = (input.bytes[2] << 8) | input.bytes[1];
    if (status_code == 50 || status_code == 51 || status_code == 52 || status_code == 53) {
      let ID = (input.bytes[6] << 24) | (input.bytes[5] << 16) | (input.bytes[4] << 8) | input.bytes[3];
      return {
        data: { header_device: header_device, status_code: status_code, ID: ID },
        warnings: [],
        errors: []
      };
    }
    return {
      data: { header_device: header_device, status_code: status_code },
      warnings: [],
      errors: []
    };
  }

  if (header_device == 1) {
    let Dimming = input.bytes[1];
    let Status_lamp = input.bytes[2];
    let Energy_raw = (input.bytes[6] << 8) | (input.bytes[5] << 8) | (input.bytes[4] << 8) | input.bytes[3];
    let voltage_raw = (input.bytes[8] << 8) | input.bytes[7];
    let current_raw = (input.bytes[10] << 8) | input.bytes[9];
    let PF_raw = (input.bytes[12] << 8) | input.bytes[11];
    let Power_raw = (input.bytes[14] << 8) | input.bytes[13];
    let Tilt_raw = (input.bytes[16] << 8) | input.bytes[15];

    return {
      data: {
        header_device: header_device,
        voltage: voltage_raw / 100,
        current: current_raw / 100,
        Power: Power_raw / 100,
        Energy: Energy_raw / 100,
        PF: PF_raw / 100,
        Tilt: Tilt_raw / 100,
        Status_lamp: Status_lamp,
        Dimming: Dimming,
      },
      warnings: [],
      errors: []
    };
  }

  if (header_device == 2) {
    let lat_raw = (input.bytes[4] << 24) | (input.bytes[3] << 16) | (input.bytes[2] << 8) | input.bytes[1];
    let lng_raw = (input.bytes[8] << 24) | (input.bytes[7] << 16) | (input.bytes[6] << 8) | input.bytes[5];
    return {
      data: {
        header_device: header_device,
        lat: lat_raw / 1000000,
        lng: lng_raw / 1000000,
        alt: input.bytes[9],
      },
      warnings: [],
      errors: []
    };
  }

  if (header_device == 3) {
    let timestamp = (input.bytes[4] << 24) | (input.bytes[3] << 16) | (input.bytes[2] << 8) | input.bytes[1];
    return {
      data: { header_device: header_device, timestamp: timestamp },
      warnings: [],
      errors: []
    };
  }

  return {
    data: { header_device: header_device },
    warnings: ["unexpected device header"],
    errors: []
  };
}
"""

_RELAY_DEFAULTS: dict[str, Any] = {
    "isRelay": False,
    "isRelayEd": False,
    "relayEdRelayOnly": False,
    "relayEnabled": False,
    "relayCadPeriodicity": "SEC_1",
    "relayDefaultChannelIndex": 0,
    "relaySecondChannelFreq": 0,
    "relaySecondChannelDr": 0,
    "relaySecondChannelAckOffset": "KHZ_0",
    "relayEdActivationMode": "DISABLE_RELAY_MODE",
    "relayEdSmartEnableLevel": 0,
    "relayEdBackOff": 0,
    "relayEdUplinkLimitBucketSize": 0,
    "relayEdUplinkLimitReloadRate": 0,
    "relayJoinReqLimitReloadRate": 0,
    "relayNotifyLimitReloadRate": 0,
    "relayGlobalUplinkLimitReloadRate": 0,
    "relayOverallLimitReloadRate": 0,
    "relayJoinReqLimitBucketSize": 0,
    "relayNotifyLimitBucketSize": 0,
    "relayGlobalUplinkLimitBucketSize": 0,
    "relayOverallLimitBucketSize": 0,
}


def device_profile_payload(tenant_id: str) -> dict[str, Any]:
    return {
        "deviceProfile": {
            "tenantId": tenant_id,
            "name": PROFILE_NAME,
            "description": "",
            "region": "AS923_2",
            "regionConfigId": "as923_2",
            "macVersion": "LORAWAN_1_0_3",
            "regParamsRevision": "A",
            "adrAlgorithmId": "default",
            "payloadCodecRuntime": "JS",
            "payloadCodecScript": PAYLOAD_CODEC_SCRIPT,
            "flushQueueOnActivate": True,
            "uplinkInterval": 3600,
            "deviceStatusReqInterval": 1,
            "supportsOtaa": False,
            "supportsClassB": False,
            "supportsClassC": True,
            "classBTimeout": 0,
            "classBPingSlotNbK": 0,
            "classBPingSlotDr": 0,
            "classBPingSlotFreq": 0,
            "classCTimeout": 0,
            "abpRx1Delay": 1,
            "abpRx1DrOffset": 0,
            "abpRx2Dr": 2,
            "abpRx2Freq": 921400000,
            "tags": {},
            "measurements": {key: {"name": "", "kind": "UNKNOWN"} for key in MEASUREMENT_KEYS},
            "autoDetectMeasurements": True,
            "allowRoaming": False,
            "rx1Delay": 0,
            **_RELAY_DEFAULTS,
        }
    }
